"""
Public API for field-validation-lib

This is the "front door" - the main entry point for validating records.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .models import FieldSpec, ValidationResult
from .registry import RuleRegistry
from .rule_loader import RuleLoader
from .validation_engine import ValidationEngine

logger = logging.getLogger(__name__)


class Validator:
    """
    Validates records against declarative field rules.

    Rules are normalized once, at construction. Each validate() call rebuilds
    the error state, so one instance must not be shared between threads
    without external serialization.

    Example:
        from field_validation import Validator

        validator = Validator({
            "name": "defined|minlength:2|maxlength:20",
            "age": {"optional": None, "is_int": None, "range": [18, 120]},
            "tags": ["is_array", {"min": 1}],
            "code": lambda record, value: value.startswith("X"),
        })

        if not validator.validate(data):
            print(validator.get_last_error())
    """

    def __init__(
        self,
        rules: Mapping[str, Any],
        registry: Optional[RuleRegistry] = None,
        stop_on_first_error: bool = True,
    ):
        """
        Initialize validator with rule declarations.

        Args:
            rules: Mapping of field name to a piped rule string, a mapping of
                rule name to parameter, a sequence of rules, or a callable
            registry: Registry with host functions, classes and custom
                predicates. Defaults to built-ins only.
            stop_on_first_error: Default policy for validate()

        Raises:
            RuleDeclarationError: If the rules cannot be normalized
        """
        self.registry = registry if registry is not None else RuleRegistry()
        self.stop_on_first_error = stop_on_first_error
        self.fields: List[FieldSpec] = RuleLoader().load_rules(rules)
        self.engine = ValidationEngine(self.fields, self.registry)
        self.result = ValidationResult()
        logger.debug("Validator initialized with %d fields", len(self.fields))

    @classmethod
    def from_config(cls, uri: str) -> "Validator":
        """
        Build a validator from a YAML rule document.

        Example:
            validator = Validator.from_config("file:///etc/app/rules.yaml")
        """
        from .config_loader import ConfigLoader

        return ConfigLoader(uri).build_validator()

    def validate(self, record: Any, stop_on_first_error: Optional[bool] = None) -> bool:
        """
        Validate a record against the declared rules.

        Args:
            record: Mapping (or object with attributes) of field name to value
            stop_on_first_error: Stop at the first failing rule. When False,
                every field runs and each failing field records one message.
                Defaults to the policy given at construction (True).

        Returns:
            True if every rule passed
        """
        if stop_on_first_error is None:
            stop_on_first_error = self.stop_on_first_error
        self.result = self.engine.validate(record, stop_on_first_error)
        return self.result.success

    def get_last_error(self) -> Optional[str]:
        """Most recent failure message of the last run, None if it passed."""
        return self.result.last_error

    def get_first_error(self) -> Optional[str]:
        """Earliest failure message of the last run, None if it passed."""
        return self.result.first_error

    def get_errors(self) -> Dict[str, str]:
        """Failure message per failing field of the last run."""
        return dict(self.result.errors_by_field)
