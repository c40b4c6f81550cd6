"""
Built-in rule predicates.

Every predicate has the signature ``predicate(record, field, parameter)`` and
either returns (pass), returns ``Signal.SKIP_FIELD`` (``optional`` only), or
raises a RuleFailure subclass. Predicates are collected into BUILTINS by the
``builtin`` decorator; RuleRegistry copies that table at construction.

Value model:
    scalar    -> bool, int, float, str
    array     -> list, tuple, dict
    countable -> any sized container that is not a string
    object    -> anything else except None
"""

import functools
import re
from collections.abc import Sized
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .errors import FieldMissingError, FieldValidationError, InvalidRuleParameter
from .models import Signal

Number = Union[int, float]
Predicate = Callable[[Mapping[str, Any], str, Any], Optional[Signal]]

BUILTINS: Dict[str, Predicate] = {}

_NUMERIC = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_UNSIGNED_INT = re.compile(r"^[0-9]+$")
_SIGNED_INT = re.compile(r"^[+-]?[0-9]+$")

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "u": 0,  # str patterns are unicode already
    "S": 0,  # study; nothing to do
}
# Modifiers that rewrite the pattern body instead of mapping to an re flag
_REWRITE_MODIFIERS = {"A", "D", "U"}
_DELIMITERS = {d: d for d in "/#~!@%;,`"}
_DELIMITERS["{"] = "}"
_COUNTED_REPEAT = re.compile(r"\{\d+(,\d*)?\}")


def builtin(name: str):
    """
    Decorator to register a built-in predicate.

    Usage:
        @builtin("is_even")
        def validate_is_even(record, field, parameter=None):
            ...
    """
    def decorator(fn: Predicate) -> Predicate:
        BUILTINS[name] = fn
        return fn
    return decorator


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

def is_scalar(value: Any) -> bool:
    return isinstance(value, (bool, int, float, str))


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple, dict))


def is_countable(value: Any) -> bool:
    return isinstance(value, Sized) and not isinstance(value, (str, bytes))


def as_number(value: Any) -> Optional[Number]:
    """Return value as a number when it is one or spells one, else None."""
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str) and _NUMERIC.match(value):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return float(text)
    return None


def require_defined(record: Mapping[str, Any], field: str) -> Any:
    """Return the field's value, failing when the field is absent."""
    if field not in record:
        raise FieldMissingError(field)
    return record[field]


def numeric_parameter(rule: str, parameter: Any, field: str) -> Number:
    number = as_number(parameter)
    if number is None:
        raise InvalidRuleParameter(
            f"The rule '{rule}' requires a numeric parameter, got '{_render(parameter)}'",
            field,
        )
    return number


def range_limits(parameter: Any, field: str, delimiter: str = ",") -> Tuple[Number, Number]:
    """
    Resolve a range parameter to (min, max).

    Accepts "12.5,39.6" or a two-item sequence. Extra limits are ignored.
    """
    if isinstance(parameter, (list, tuple)):
        limits: List[Any] = list(parameter)
    elif isinstance(parameter, str):
        limits = parameter.split(delimiter)
    else:
        limits = [] if parameter is None else [parameter]

    numbers = [as_number(limit) for limit in limits[:2]]
    if len(numbers) < 2 or None in numbers:
        raise InvalidRuleParameter(
            f"The range defined: '{_render(parameter)}' is not valid", field
        )
    return numbers[0], numbers[1]


@functools.lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> "re.Pattern":
    """
    Compile a delimited pattern such as ``/^\\w{3}$/i`` into a Python regex.

    Delimiters are one of ``/ # ~ ! @ % ; , `` or a ``{...}`` pair. A pattern
    starting with any other character has no delimiter and is compiled
    verbatim, so ``(ab)+``, ``[a-z]+`` and ``<tag>`` are plain patterns rather
    than bracket-delimited ones.

    Modifiers:
        i m s x   re.IGNORECASE, MULTILINE, DOTALL, VERBOSE
        u S       accepted, no effect
        A         anchored at the start of the subject
        D         ``$`` matches only at the very end (ignored with ``m``)
        U         quantifiers are lazy unless followed by ``?``

    Any other modifier (``X``, ``J``, ``n``, ...) is rejected.

    Raises:
        ValueError: If the delimiters or modifiers are malformed
        re.error: If the pattern body does not compile
    """
    if not pattern:
        raise ValueError("empty pattern")

    closing = _DELIMITERS.get(pattern[0])
    if closing is None:
        return re.compile(pattern)

    end = pattern.rfind(closing)
    if end <= 0:
        raise ValueError(f"no ending delimiter '{closing}' found")

    flags = 0
    rewrites = set()
    for modifier in pattern[end + 1:]:
        if modifier in _REWRITE_MODIFIERS:
            rewrites.add(modifier)
        elif modifier in _REGEX_FLAGS:
            flags |= _REGEX_FLAGS[modifier]
        else:
            raise ValueError(f"unknown modifier '{modifier}'")

    body = pattern[1:end]
    dollar_end_only = "D" in rewrites and not flags & re.MULTILINE
    if dollar_end_only or "U" in rewrites:
        body = _rewrite_body(body, dollar_end_only, "U" in rewrites)
    if "A" in rewrites:
        body = rf"\A(?:{body})"
    return re.compile(body, flags)


def _rewrite_body(body: str, dollar_end_only: bool, ungreedy: bool) -> str:
    """Apply the D and U modifiers to a pattern body, outside character classes."""
    out: List[str] = []
    i = 0
    in_class = False
    while i < len(body):
        ch = body[i]
        if ch == "\\":
            out.append(body[i:i + 2])
            i += 2
            continue
        if in_class:
            in_class = ch != "]"
            out.append(ch)
            i += 1
            continue
        if ch == "[":
            in_class = True
            out.append(ch)
            i += 1
            # "]" right after "[" or "[^" is a literal member
            if body[i:i + 1] == "^":
                out.append("^")
                i += 1
            if body[i:i + 1] == "]":
                out.append("]")
                i += 1
            continue
        if ch == "$" and dollar_end_only:
            out.append(r"\Z")
            i += 1
            continue

        quantifier = None
        if ungreedy:
            if ch in "*+" or (ch == "?" and out[-1:] != ["("]):
                quantifier = ch
            elif ch == "{":
                counted = _COUNTED_REPEAT.match(body, i)
                quantifier = counted.group() if counted else None
        if quantifier is None:
            out.append(ch)
            i += 1
            continue

        out.append(quantifier)
        i += len(quantifier)
        following = body[i:i + 1]
        if following == "?":
            i += 1
        elif following == "+":
            out.append("+")
            i += 1
        else:
            out.append("?")
    return "".join(out)


def _render(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def _text(value: Any) -> str:
    """Text of a scalar as length and pattern checks see it; True is "1", False is ""."""
    if isinstance(value, bool):
        return "1" if value else ""
    return str(value)


def _measure(value: Any) -> Optional[Number]:
    """
    Quantity compared by min/max/range.

    Numbers and numeric strings compare by value, other strings by character
    length, containers by element count.
    """
    if is_scalar(value):
        number = as_number(value)
        return number if number is not None else len(value)
    if is_countable(value):
        return len(value)
    return None


def _require_measure(value: Any, field: str) -> Number:
    quantity = _measure(value)
    if quantity is None:
        raise FieldValidationError(
            f"The field '{field}' is not a scalar or countable value", field
        )
    return quantity


def _require_scalar(value: Any, field: str, message: str) -> None:
    if not is_scalar(value):
        raise FieldValidationError(message, field)


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------

@builtin("defined")
def validate_defined(record, field, parameter=None):
    require_defined(record, field)


@builtin("optional")
def validate_optional(record, field, parameter=None):
    """Skip the field's remaining rules when it is absent."""
    if field not in record:
        return Signal.SKIP_FIELD
    return None


# ---------------------------------------------------------------------------
# Bounds
# ---------------------------------------------------------------------------

@builtin("min")
def validate_min(record, field, parameter=None):
    value = require_defined(record, field)
    limit = numeric_parameter("min", parameter, field)
    if _require_measure(value, field) < limit:
        raise FieldValidationError(
            f"The field '{field}' has not the minimum length required", field
        )


@builtin("max")
def validate_max(record, field, parameter=None):
    value = require_defined(record, field)
    limit = numeric_parameter("max", parameter, field)
    if _require_measure(value, field) > limit:
        raise FieldValidationError(
            f"The field '{field}' has not the maximum length required", field
        )


@builtin("minlength")
def validate_minlength(record, field, parameter=None):
    value = require_defined(record, field)
    limit = numeric_parameter("minlength", parameter, field)
    _require_scalar(value, field, f"The field '{field}' is not a scalar value")
    if len(_text(value)) < limit:
        raise FieldValidationError(
            f"The field '{field}' has not the minimum character length required", field
        )


@builtin("maxlength")
def validate_maxlength(record, field, parameter=None):
    value = require_defined(record, field)
    limit = numeric_parameter("maxlength", parameter, field)
    _require_scalar(value, field, f"The field '{field}' is not a scalar value")
    if len(_text(value)) > limit:
        raise FieldValidationError(
            f"The field '{field}' has not the maximum character length required", field
        )


@builtin("range")
def validate_range(record, field, parameter=None):
    """Value (or element count) within [min, max]; e.g. ``range:12.5,57.4``."""
    low, high = range_limits(parameter, field)
    value = require_defined(record, field)
    quantity = _require_measure(value, field)
    if quantity > high or quantity < low:
        raise FieldValidationError(
            f"The field '{field}' exceeds the range limits defined", field
        )


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@builtin("is_int")
def validate_is_int(record, field, parameter=None):
    value = require_defined(record, field)
    if not (is_scalar(value) and _UNSIGNED_INT.match(_text(value))):
        raise FieldValidationError(f"The field '{field}' is not an integer", field)


@builtin("is_array")
def validate_is_array(record, field, parameter=None):
    value = require_defined(record, field)
    if not is_array(value):
        raise FieldValidationError(f"The field '{field}' is not an array", field)


@builtin("is_object")
def validate_is_object(record, field, parameter=None):
    value = require_defined(record, field)
    if value is None or is_scalar(value) or is_array(value) or isinstance(
        value, (set, frozenset, bytes)
    ):
        raise FieldValidationError(f"The field '{field}' is not an object", field)


@builtin("is_scalar")
def validate_is_scalar(record, field, parameter=None):
    value = require_defined(record, field)
    _require_scalar(value, field, f"The field '{field}' is not a scalar")


@builtin("regex")
def validate_regex(record, field, parameter=None):
    value = require_defined(record, field)
    _require_scalar(value, field, f"The field '{field}' is not a scalar")
    if not isinstance(parameter, str):
        raise InvalidRuleParameter(
            f"The regex defined: '{_render(parameter)}' is not valid", field
        )
    try:
        pattern = compile_pattern(parameter)
    except (ValueError, re.error) as e:
        raise InvalidRuleParameter(
            f"The regex defined: '{parameter}' is not valid: {e}", field
        ) from e
    if not pattern.search(_text(value)):
        raise FieldValidationError(
            f"The field '{field}' not match regex '{parameter}'", field
        )


# ---------------------------------------------------------------------------
# Sign
# ---------------------------------------------------------------------------

def _signed_int(value: Any, field: str) -> int:
    if not (is_scalar(value) and _SIGNED_INT.match(_text(value))):
        raise FieldValidationError(f"The field '{field}' is not an integer", field)
    return int(_text(value))


@builtin("is_positive")
def validate_is_positive(record, field, parameter=None):
    """Zero or above; any value passing is_int already is."""
    validate_is_int(record, field)


@builtin("is_negative")
def validate_is_negative(record, field, parameter=None):
    """Signed integer literal below zero; is_int would reject every negative value."""
    value = require_defined(record, field)
    if _signed_int(value, field) >= 0:
        raise FieldValidationError(f"The field '{field}' is not negative", field)
