"""
Rule Registry - Rule Name Resolution

Maps each RuleSpec to an executable predicate with the built-in signature
``predicate(record, field, parameter)``.

## Resolution Order

1. **Inline predicate:** the rule name is itself callable
2. **Method reference:** rule name ``"method"`` with a ``"Class::member"``
   parameter, looked up in the classes registered with register_class()
3. **Built-in / custom predicate:** BUILTINS plus anything added with register()
4. **Named function:** functions registered with register_function()
5. **UnknownRuleError**

Callables supplied by the host (inline predicates, static methods, named
functions) are wrapped so they look like built-ins to the executor. Each
wrapper first requires the field to be defined, then converts the callable's
return value with Check.of().

Named functions and classes are never looked up in module globals; the host
registers them explicitly before validating.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from .errors import (
    FieldValidationError,
    InvalidRuleParameter,
    UnknownRuleError,
    UnresolvedMethodError,
)
from .models import Check, RuleSpec
from .predicates import BUILTINS, Predicate, require_defined

logger = logging.getLogger(__name__)

METHOD_SEPARATOR = "::"


class RuleRegistry:
    """Resolves rule names to predicates and holds the host's extensions"""

    def __init__(
        self,
        functions: Optional[Mapping[str, Callable[..., Any]]] = None,
        classes: Optional[Mapping[str, Any]] = None,
    ):
        """
        Initialize registry with the built-in predicates.

        Args:
            functions: Optional mapping of rule name to named function
            classes: Optional mapping of class name to class (or namespace)
                for "method" rules
        """
        self._predicates: Dict[str, Predicate] = dict(BUILTINS)
        self._functions: Dict[str, Callable[..., Any]] = {}
        self._classes: Dict[str, Any] = {}

        for name, fn in (functions or {}).items():
            self.register_function(name, fn)
        for name, cls in (classes or {}).items():
            self.register_class(cls, name)

    # Extension API

    def register(self, name: str, predicate: Optional[Predicate] = None):
        """
        Register a custom predicate with the built-in signature.

        Overrides a built-in of the same name. Usable directly or as a decorator:

            @registry.register("is_even")
            def is_even(record, field, parameter=None):
                if require_defined(record, field) % 2:
                    raise FieldValidationError(f"The field '{field}' is odd", field)
        """
        if predicate is None:
            def decorator(fn: Predicate) -> Predicate:
                self.register(name, fn)
                return fn
            return decorator

        if not callable(predicate):
            raise TypeError(f"Predicate for rule '{name}' must be callable")
        self._predicates[name] = predicate
        logger.info("Registered predicate '%s'", name)
        return predicate

    def register_function(self, name: str, fn: Callable[..., Any]) -> None:
        """Register a named function called as fn(value) or fn(value, parameter)."""
        if not callable(fn):
            raise TypeError(f"Function for rule '{name}' must be callable")
        self._functions[name] = fn
        logger.info("Registered function '%s'", name)

    def register_class(self, cls: Any, name: Optional[str] = None) -> None:
        """Register a class (or module) whose members "method" rules may reference."""
        key = name or getattr(cls, "__name__", None)
        if not key:
            raise TypeError(f"Cannot determine a registration name for {cls!r}")
        self._classes[key] = cls
        logger.info("Registered class '%s'", key)

    def names(self) -> List[str]:
        """All rule names that resolve without an inline predicate, sorted."""
        return sorted(set(self._predicates) | set(self._functions))

    def copy(self) -> "RuleRegistry":
        clone = RuleRegistry()
        clone._predicates = dict(self._predicates)
        clone._functions = dict(self._functions)
        clone._classes = dict(self._classes)
        return clone

    # Resolution

    def resolve(self, rule: RuleSpec) -> Predicate:
        """
        Resolve a rule to a predicate.

        Args:
            rule: Normalized rule

        Returns:
            Callable taking (record, field, parameter)

        Raises:
            UnknownRuleError: If nothing matches the rule name
            UnresolvedMethodError: If a "method" rule's class or member is missing
            InvalidRuleParameter: If a "method" reference is malformed
        """
        if rule.is_inline:
            return self._inline(rule.name)

        if rule.is_method:
            return self._method(rule)

        predicate = self._predicates.get(rule.name)
        if predicate is not None:
            return predicate

        fn = self._functions.get(rule.name)
        if fn is not None:
            return self._function(rule.name, fn)

        raise UnknownRuleError(rule.name, rule.field)

    def _inline(self, fn: Callable[..., Any]) -> Predicate:
        def predicate(record, field, parameter=None):
            value = require_defined(record, field)
            check = Check.of(fn(record, value))
            if not check.ok:
                raise FieldValidationError(
                    check.message or f"The field '{field}' does not pass closure validator",
                    field,
                )
        return predicate

    def _method(self, rule: RuleSpec) -> Predicate:
        reference = rule.parameter
        if not isinstance(reference, str) or METHOD_SEPARATOR not in reference:
            raise InvalidRuleParameter(
                f"The method reference '{reference}' must have the form 'Class::method'",
                rule.field,
            )

        class_name, _, member_name = reference.partition(METHOD_SEPARATOR)
        cls = self._classes.get(class_name)
        if cls is None:
            raise UnresolvedMethodError(
                f"The class '{class_name}' does not exist", rule.field
            )
        member = getattr(cls, member_name, None)
        if not callable(member):
            raise UnresolvedMethodError(
                f"The method '{member_name}' of class '{class_name}' does not exist",
                rule.field,
            )

        def predicate(record, field, parameter=None):
            require_defined(record, field)
            check = Check.of(member(record, field))
            if not check.ok:
                raise FieldValidationError(
                    check.message
                    or f"The field '{field}' does not pass validator '{reference}'",
                    field,
                )
        return predicate

    def _function(self, name: str, fn: Callable[..., Any]) -> Predicate:
        def predicate(record, field, parameter=None):
            value = require_defined(record, field)
            try:
                if parameter is None:
                    outcome = fn(value)
                else:
                    outcome = fn(value, parameter)
            except Exception as e:
                raise FieldValidationError(str(e) or type(e).__name__, field) from e
            check = Check.of(outcome)
            if not check.ok:
                raise FieldValidationError(
                    check.message or f"The field '{field}' does not pass '{name}' validator",
                    field,
                )
        return predicate
