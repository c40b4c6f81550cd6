"""
Rule Loader - Rule Declaration Normalization

Turns the raw, per-field rule declarations accepted by Validator into ordered
FieldSpec / RuleSpec records the executor can run without caring how a rule
was written.

## Accepted Declaration Forms

1. **Piped string:** ``"defined|is_scalar|min:2|regex:/^a.*z$/"``
   - Split on ``|`` left to right
   - Each segment splits on the *first* ``:`` into ``(name, parameter)``
   - No ``:`` means ``parameter=None``

2. **Mapping:** ``{"min": 3, "range": [12.5, 39.6]}``
   - String key: key is the rule name, value is the parameter
   - Non-negative integer key: value is the rule name (or an inline predicate)
     with ``parameter=None``

3. **Sequence:** ``["is_array", {"min": 3}, my_predicate]``
   - Each item is taken positionally, like integer keys in a mapping
   - A mapping item contributes its entries in order

4. **Inline predicate:** any callable, wrapped as a single rule

Non-string rule values are never split on delimiters. An empty segment
(``"a||b"`` or a trailing ``|``) is kept as a rule with an empty name so the
run reports it as unknown instead of passing silently.
"""

import logging
from typing import Any, Iterable, List, Mapping

from .errors import RuleDeclarationError
from .models import FieldSpec, RuleSpec

logger = logging.getLogger(__name__)

RULE_DELIMITER = "|"
PARAMETER_DELIMITER = ":"


class RuleLoader:
    """Normalizes rule declarations into FieldSpecs"""

    def load_rules(self, rules: Mapping[str, Any]) -> List[FieldSpec]:
        """
        Normalize every field of a rules mapping.

        Args:
            rules: Mapping of field name to rule declaration

        Returns:
            FieldSpecs in field declaration order

        Raises:
            RuleDeclarationError: If rules is not a mapping or a declaration
                cannot be normalized
        """
        if not isinstance(rules, Mapping):
            raise RuleDeclarationError(
                f"Rules must be a mapping of field name to rules, got {type(rules).__name__}"
            )

        fields = [self.load_field(name, declaration) for name, declaration in rules.items()]
        logger.debug(
            "Loaded %d fields with %d rules",
            len(fields),
            sum(len(f.rules) for f in fields),
        )
        return fields

    def load_field(self, field: str, declaration: Any) -> FieldSpec:
        """
        Normalize a single field's declaration.

        Args:
            field: Field name
            declaration: Piped string, mapping, sequence or callable

        Returns:
            FieldSpec with rules in declaration order
        """
        if not isinstance(field, str):
            raise RuleDeclarationError(
                f"Field names must be strings, got {type(field).__name__}: {field!r}"
            )

        if callable(declaration):
            rules = [RuleSpec(field, declaration)]
        elif isinstance(declaration, str):
            rules = self._parse_piped(field, declaration)
        elif isinstance(declaration, Mapping):
            rules = self._parse_mapping(field, declaration)
        elif isinstance(declaration, (list, tuple)):
            rules = self._parse_sequence(field, declaration)
        else:
            raise RuleDeclarationError(
                f"Rules for field '{field}' must be a string, mapping, sequence "
                f"or callable, got {type(declaration).__name__}"
            )

        return FieldSpec(field, tuple(rules))

    def _parse_piped(self, field: str, declaration: str) -> List[RuleSpec]:
        return [
            self._parse_segment(field, segment)
            for segment in declaration.split(RULE_DELIMITER)
        ]

    def _parse_segment(self, field: str, segment: str) -> RuleSpec:
        name, separator, parameter = segment.partition(PARAMETER_DELIMITER)
        return RuleSpec(field, name.strip(), parameter if separator else None)

    def _parse_mapping(self, field: str, declaration: Mapping) -> List[RuleSpec]:
        rules = []
        for key, value in declaration.items():
            if isinstance(key, bool):
                raise RuleDeclarationError(
                    f"Invalid rule key {key!r} for field '{field}'"
                )
            if isinstance(key, int):
                if key < 0:
                    raise RuleDeclarationError(
                        f"Positional rule index must be non-negative, got {key} for field '{field}'"
                    )
                rules.append(self._positional(field, value))
            elif isinstance(key, str):
                rules.append(RuleSpec(field, key.strip(), value))
            else:
                raise RuleDeclarationError(
                    f"Invalid rule key {key!r} for field '{field}'"
                )
        return rules

    def _parse_sequence(self, field: str, declaration: Iterable) -> List[RuleSpec]:
        rules = []
        for item in declaration:
            if isinstance(item, Mapping):
                rules.extend(self._parse_mapping(field, item))
            else:
                rules.append(self._positional(field, item))
        return rules

    def _positional(self, field: str, value: Any) -> RuleSpec:
        """A value supplied without a rule-name key names the rule itself."""
        if callable(value):
            return RuleSpec(field, value)
        if isinstance(value, str):
            return RuleSpec(field, value.strip())
        raise RuleDeclarationError(
            f"Positional rule for field '{field}' must be a rule name or callable, "
            f"got {type(value).__name__}"
        )
