"""
Data model shared by the loader, executor and engine.

A rule declaration is normalized into one FieldSpec per field, each holding an
ordered tuple of RuleSpec records. Predicates report their verdict as a Check
and the executor turns outcomes into a Signal for the engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

# Sentinel rule name for "Class::member" references
METHOD_RULE = "method"

RuleName = Union[str, Callable[..., Any]]


class Signal(Enum):
    """Control signal returned from running a single rule."""

    CONTINUE = "continue"
    SKIP_FIELD = "skip_field"
    ABORT_RUN = "abort_run"


@dataclass(frozen=True)
class Check:
    """
    Verdict returned by inline predicates, static methods and registered functions.

    A failed check may carry its own message; when it doesn't, the caller
    substitutes a rule-specific default.
    """

    ok: bool
    message: Optional[str] = None

    @classmethod
    def passed(cls) -> "Check":
        return cls(True)

    @classmethod
    def failed(cls, message: Optional[str] = None) -> "Check":
        return cls(False, message)

    @classmethod
    def of(cls, outcome: Any) -> "Check":
        """Coerce a predicate's return value (Check or truthy/falsy) to a Check."""
        if isinstance(outcome, Check):
            return outcome
        return cls(bool(outcome))


@dataclass(frozen=True)
class RuleSpec:
    """
    One normalized rule.

    Attributes:
        field: Name of the owning field
        name: Rule name, or the inline predicate itself
        parameter: Rule argument, None for parameterless rules
    """

    field: str
    name: RuleName
    parameter: Any = None

    @property
    def is_inline(self) -> bool:
        return callable(self.name)

    @property
    def is_method(self) -> bool:
        return not self.is_inline and self.name == METHOD_RULE

    def describe(self) -> str:
        """Printable rule name, used in log records."""
        if self.is_inline:
            return getattr(self.name, "__name__", repr(self.name))
        return self.name


@dataclass(frozen=True)
class FieldSpec:
    """A field and its rules in declaration order."""

    name: str
    rules: Tuple[RuleSpec, ...] = ()


@dataclass
class ValidationResult:
    """
    Outcome of one validate() run.

    errors_by_field keeps at most one message per field (the last recorded);
    ordered_errors keeps every recorded message in the order it happened.
    """

    success: bool = True
    errors_by_field: Dict[str, str] = field(default_factory=dict)
    ordered_errors: List[str] = field(default_factory=list)

    def record(self, field_name: str, message: str) -> None:
        self.errors_by_field[field_name] = message
        self.ordered_errors.append(message)
        self.success = False

    @property
    def first_error(self) -> Optional[str]:
        return self.ordered_errors[0] if self.ordered_errors else None

    @property
    def last_error(self) -> Optional[str]:
        return self.ordered_errors[-1] if self.ordered_errors else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "errors": dict(self.errors_by_field),
            "ordered_errors": list(self.ordered_errors),
        }
