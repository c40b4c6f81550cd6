import logging
from typing import Any, List, Mapping

from .models import FieldSpec, Signal, ValidationResult
from .registry import RuleRegistry
from .rule_executor import RuleExecutor

logger = logging.getLogger(__name__)


class ValidationEngine:
    """Core validation logic, independent of how rules were declared"""

    def __init__(self, fields: List[FieldSpec], registry: RuleRegistry):
        """
        Initialize validation engine with normalized fields.

        Args:
            fields: FieldSpecs in declaration order (never mutated)
            registry: Registry used to resolve rule names
        """
        self.fields = fields
        self.registry = registry

    def validate(self, record: Any, stop_on_first_error: bool = True) -> ValidationResult:
        """
        Run every field's rules against a record.

        Fields run in declaration order. A failing rule ends its field; under
        stop_on_first_error it also ends the run.

        Args:
            record: Mapping (or object with attributes) of field name to value
            stop_on_first_error: Abort at the first failing rule

        Returns:
            A fresh ValidationResult
        """
        data = as_record(record)
        result = ValidationResult()
        executor = RuleExecutor(self.registry, data, result, stop_on_first_error)

        for field in self.fields:
            if executor.execute_field(field) is Signal.ABORT_RUN:
                logger.debug("Validation aborted at field '%s'", field.name)
                break

        logger.debug(
            "Validated %d fields: %s",
            len(self.fields),
            "passed" if result.success else f"{len(result.errors_by_field)} failing",
        )
        return result


def as_record(record: Any) -> Mapping[str, Any]:
    """Read a mapping as-is and an object through its attributes."""
    if isinstance(record, Mapping):
        return record
    if hasattr(record, "__dict__"):
        return vars(record)
    raise TypeError(
        f"Input must be a mapping or an object with attributes, got {type(record).__name__}"
    )
