"""
field-validation-lib: Declarative field validation for key-value records

This library checks input records against per-field rules with:
- Piped rule strings ("defined|min:3|regex:/^a/")
- Mapping and sequence rule declarations
- Inline predicate callables
- Host-registered named functions and "Class::method" references
- Stop-on-first-error or per-field error aggregation
- YAML rule documents

Example:
    from field_validation import Validator

    validator = Validator({"a": "defined|is_scalar|min:2|maxlength:6"})
    if not validator.validate({"a": "abc"}):
        print(validator.get_errors())
"""

from .api import Validator
from .errors import (
    ConfigError,
    FieldMissingError,
    FieldValidationError,
    InvalidRuleParameter,
    RuleDeclarationError,
    RuleFailure,
    UnknownRuleError,
    UnresolvedMethodError,
    ValidatorError,
)
from .models import Check, FieldSpec, RuleSpec, Signal, ValidationResult
from .registry import RuleRegistry

__version__ = "0.1.0"
__all__ = [
    "Validator",
    "RuleRegistry",
    "Check",
    "FieldSpec",
    "RuleSpec",
    "Signal",
    "ValidationResult",
    "ValidatorError",
    "RuleFailure",
    "FieldMissingError",
    "FieldValidationError",
    "UnknownRuleError",
    "InvalidRuleParameter",
    "UnresolvedMethodError",
    "RuleDeclarationError",
    "ConfigError",
]
