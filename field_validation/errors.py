"""Errors raised by rule resolution, predicates and rule documents."""

from typing import Optional


class ValidatorError(Exception):
    """Base exception for all field-validation errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RuleFailure(ValidatorError):
    """
    A rule could not pass for a field.

    Raised inside a validate() run and always caught by the rule executor,
    which records the message against the field.
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class FieldMissingError(RuleFailure):
    """The field is absent from the input record."""

    def __init__(self, field: str) -> None:
        super().__init__(f"The field '{field}' is not defined", field)


class FieldValidationError(RuleFailure):
    """A predicate judged the field's value invalid."""


class UnknownRuleError(RuleFailure):
    """The rule name resolves to nothing."""

    def __init__(self, rule_name: str, field: Optional[str] = None) -> None:
        super().__init__(
            f"The rule '{rule_name}' does not have any function associated", field
        )
        self.rule_name = rule_name


class InvalidRuleParameter(RuleFailure):
    """The rule parameter is malformed (e.g. a range with one limit)."""


class UnresolvedMethodError(RuleFailure):
    """A "method" rule names a class or member that is not registered."""


class RuleDeclarationError(ValidatorError):
    """The rules structure handed to a Validator cannot be normalized."""


class ConfigError(ValidatorError):
    """A rule document could not be loaded or is structurally invalid."""
