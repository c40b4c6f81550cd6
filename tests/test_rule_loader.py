"""
Tests for RuleLoader

Checks that every declaration form normalizes to ordered RuleSpecs.
"""
import pytest

from field_validation import FieldSpec, RuleDeclarationError, RuleSpec
from field_validation.rule_loader import RuleLoader


@pytest.fixture
def loader():
    return RuleLoader()


def _pairs(spec: FieldSpec):
    return [(r.name, r.parameter) for r in spec.rules]


class TestPipedStrings:
    """Test piped string declarations."""

    def test_split_left_to_right(self, loader):
        spec = loader.load_field("a", "defined|is_scalar|min:2|maxlength:6|regex:/^a.*z$/")
        assert _pairs(spec) == [
            ("defined", None),
            ("is_scalar", None),
            ("min", "2"),
            ("maxlength", "6"),
            ("regex", "/^a.*z$/"),
        ]

    def test_parameter_splits_on_first_colon_only(self, loader):
        spec = loader.load_field("a", "regex:/^\\d{2}:\\d{2}$/")
        assert _pairs(spec) == [("regex", "/^\\d{2}:\\d{2}$/")]

    def test_empty_parameter_is_kept(self, loader):
        """"min:" carries an empty parameter, not None."""
        spec = loader.load_field("a", "min:")
        assert _pairs(spec) == [("min", "")]

    def test_empty_segments_become_empty_names(self, loader):
        spec = loader.load_field("a", "defined|| |is_int|")
        assert [r.name for r in spec.rules] == ["defined", "", "", "is_int", ""]

    def test_rules_reference_their_field(self, loader):
        spec = loader.load_field("age", "defined|min:18")
        assert spec.name == "age"
        assert all(r.field == "age" for r in spec.rules)


class TestMappings:
    """Test mapping declarations."""

    def test_named_keys_carry_parameters(self, loader):
        spec = loader.load_field("a", {"range": [12.5, 39.6], "regex": "/x/"})
        assert _pairs(spec) == [("range", [12.5, 39.6]), ("regex", "/x/")]

    def test_integer_keys_are_positional(self, loader):
        spec = loader.load_field("b", {0: "is_array", "min": 3})
        assert _pairs(spec) == [("is_array", None), ("min", 3)]

    def test_negative_index_rejected(self, loader):
        with pytest.raises(RuleDeclarationError):
            loader.load_field("b", {-1: "is_array"})

    def test_non_string_positional_value_rejected(self, loader):
        with pytest.raises(RuleDeclarationError):
            loader.load_field("b", {0: 12})


class TestSequencesAndCallables:
    """Test sequences and inline predicates."""

    def test_sequence_items_are_positional(self, loader):
        spec = loader.load_field("b", ["is_array", {"min": 3}])
        assert _pairs(spec) == [("is_array", None), ("min", 3)]

    def test_sequence_strings_are_not_split(self, loader):
        spec = loader.load_field("b", ["defined|is_int"])
        assert _pairs(spec) == [("defined|is_int", None)]

    def test_inline_predicate_in_sequence(self, loader):
        def check(record, value):
            return True

        spec = loader.load_field("a", ["defined", check])
        assert spec.rules[1] == RuleSpec("a", check)
        assert spec.rules[1].is_inline

    def test_bare_callable(self, loader):
        def check(record, value):
            return True

        spec = loader.load_field("a", check)
        assert spec.rules == (RuleSpec("a", check, None),)

    def test_method_reference(self, loader):
        spec = loader.load_field("a", {"method": "Checks::even"})
        assert spec.rules[0].is_method
        assert spec.rules[0].parameter == "Checks::even"


class TestLoadRules:
    """Test whole rule mappings."""

    def test_field_order_preserved(self, loader):
        fields = loader.load_rules({"z": "defined", "a": "defined", "m": "defined"})
        assert [f.name for f in fields] == ["z", "a", "m"]

    def test_rules_must_be_mapping(self, loader):
        with pytest.raises(RuleDeclarationError):
            loader.load_rules(["defined"])

    def test_unsupported_declaration(self, loader):
        with pytest.raises(RuleDeclarationError):
            loader.load_rules({"a": None})

    def test_field_name_must_be_string(self, loader):
        with pytest.raises(RuleDeclarationError):
            loader.load_rules({1: "defined"})
