"""
Tests for built-in predicates

Predicates are called directly with (record, field, parameter).
"""
import re
from types import SimpleNamespace

import pytest

from field_validation import (
    FieldMissingError,
    FieldValidationError,
    InvalidRuleParameter,
    Signal,
)
from field_validation.predicates import (
    BUILTINS,
    as_number,
    compile_pattern,
    range_limits,
)


def run(rule, value, parameter=None):
    return BUILTINS[rule]({"f": value}, "f", parameter)


class TestRegistryTable:
    """Test the built-in table."""

    def test_core_rules_registered(self):
        expected = {
            "defined", "optional", "min", "max", "minlength", "maxlength", "range",
            "is_int", "is_array", "is_object", "is_scalar", "regex",
            "is_positive", "is_negative",
        }
        assert expected <= set(BUILTINS)

    @pytest.mark.parametrize("rule", ["min", "max", "minlength", "is_int", "regex", "is_negative"])
    def test_missing_field_fails_first(self, rule):
        with pytest.raises(FieldMissingError) as exc:
            BUILTINS[rule]({}, "f", "1")
        assert exc.value.message == "The field 'f' is not defined"
        assert exc.value.field == "f"


class TestPresence:
    """Test defined and optional."""

    def test_defined_accepts_none_value(self):
        assert run("defined", None) is None

    def test_optional_skips_absent_field(self):
        assert BUILTINS["optional"]({}, "f", None) is Signal.SKIP_FIELD

    def test_optional_falls_through_when_present(self):
        assert run("optional", 0) is None


class TestMinMax:
    """Test min and max."""

    @pytest.mark.parametrize("value", [3, 4, 10.5, "3", "12"])
    def test_min_passes_at_or_above(self, value):
        run("min", value, 3)

    @pytest.mark.parametrize("value", [2, -1, 2.99, "2"])
    def test_min_fails_below(self, value):
        with pytest.raises(FieldValidationError):
            run("min", value, 3)

    def test_min_counts_list_items(self):
        run("min", [1, 2, 3], "3")
        with pytest.raises(FieldValidationError):
            run("min", [1, 2], "3")

    def test_max_counts_list_items(self):
        """max fails when a container holds more than N items."""
        run("max", [1, 2], 3)
        run("max", [], 3)
        with pytest.raises(FieldValidationError) as exc:
            run("max", [1, 2, 3, 4], 3)
        assert exc.value.message == "The field 'f' has not the maximum length required"

    def test_non_numeric_string_uses_length(self):
        run("min", "abc", 2)
        with pytest.raises(FieldValidationError):
            run("max", "abcdef", 2)

    def test_non_countable_value_fails(self):
        with pytest.raises(FieldValidationError):
            run("min", None, 1)
        with pytest.raises(FieldValidationError):
            run("max", SimpleNamespace(), 1)

    @pytest.mark.parametrize("parameter", [None, "", "abc", [1, 2]])
    def test_bad_parameter(self, parameter):
        with pytest.raises(InvalidRuleParameter):
            run("min", 5, parameter)


class TestLengths:
    """Test minlength and maxlength."""

    def test_minlength(self):
        run("minlength", "abc", "3")
        with pytest.raises(FieldValidationError):
            run("minlength", "ab", "3")

    def test_maxlength_on_number_uses_digits(self):
        run("maxlength", 123, 3)
        with pytest.raises(FieldValidationError):
            run("maxlength", 1234, 3)

    def test_booleans_render_as_one_or_empty(self):
        run("maxlength", True, 1)
        run("maxlength", False, 0)
        with pytest.raises(FieldValidationError):
            run("minlength", True, 2)
        with pytest.raises(FieldValidationError):
            run("minlength", False, 1)

    def test_requires_scalar(self):
        with pytest.raises(FieldValidationError) as exc:
            run("minlength", ["abc"], 1)
        assert exc.value.message == "The field 'f' is not a scalar value"


class TestRange:
    """Test range and its limits."""

    def test_limits_from_string_and_pair_match(self):
        assert range_limits("12.5,39.6", "f") == range_limits([12.5, 39.6], "f") == (12.5, 39.6)

    @pytest.mark.parametrize("parameter", [None, "5", "5,", "a,b", [1], 7])
    def test_fewer_than_two_limits(self, parameter):
        with pytest.raises(InvalidRuleParameter):
            range_limits(parameter, "f")

    def test_limits_checked_before_presence(self):
        with pytest.raises(InvalidRuleParameter):
            BUILTINS["range"]({}, "f", "1")

    @pytest.mark.parametrize("value", [5, 6.5, 8, "7"])
    def test_inside(self, value):
        run("range", value, "5,8")

    @pytest.mark.parametrize("value", [4, 8.1, [1, 2]])
    def test_outside(self, value):
        with pytest.raises(FieldValidationError):
            run("range", value, "5,8")


class TestTypes:
    """Test type-membership predicates."""

    @pytest.mark.parametrize("value", [0, 33, "33", "007", True])
    def test_is_int_accepts(self, value):
        run("is_int", value)

    @pytest.mark.parametrize("value", [-3, "-3", "+3", 3.5, "3.0", "", "bla", None, False, [1]])
    def test_is_int_rejects(self, value):
        with pytest.raises(FieldValidationError):
            run("is_int", value)

    @pytest.mark.parametrize("value", [[], (), {}, [1, 2], {"k": 1}])
    def test_is_array(self, value):
        run("is_array", value)

    @pytest.mark.parametrize("value", ["x", 1, None, SimpleNamespace()])
    def test_is_not_array(self, value):
        with pytest.raises(FieldValidationError):
            run("is_array", value)

    def test_is_object(self):
        run("is_object", SimpleNamespace(a=1))
        for value in (None, 1, "x", [], {}):
            with pytest.raises(FieldValidationError):
                run("is_object", value)

    @pytest.mark.parametrize("value", [True, 0, 1.5, "", "text"])
    def test_is_scalar(self, value):
        run("is_scalar", value)

    @pytest.mark.parametrize("value", [None, [], {}, SimpleNamespace()])
    def test_is_not_scalar(self, value):
        with pytest.raises(FieldValidationError) as exc:
            run("is_scalar", value)
        assert exc.value.message == "The field 'f' is not a scalar"


class TestSign:
    """Test is_positive and is_negative."""

    @pytest.mark.parametrize("value", [0, 5, "12", True])
    def test_positive(self, value):
        run("is_positive", value)

    @pytest.mark.parametrize("value", [-5, "-5", "+4", 2.5])
    def test_positive_requires_is_int(self, value):
        """is_positive rejects exactly what is_int rejects."""
        with pytest.raises(FieldValidationError) as exc:
            run("is_positive", value)
        assert exc.value.message == "The field 'f' is not an integer"
        with pytest.raises(FieldValidationError):
            run("is_int", value)

    @pytest.mark.parametrize("value", [-1, "-12"])
    def test_negative(self, value):
        run("is_negative", value)

    @pytest.mark.parametrize("value", [0, 3, True])
    def test_not_negative(self, value):
        with pytest.raises(FieldValidationError):
            run("is_negative", value)

    def test_sign_requires_integer(self):
        with pytest.raises(FieldValidationError) as exc:
            run("is_negative", -1.5)
        assert exc.value.message == "The field 'f' is not an integer"


class TestRegex:
    """Test regex rule and delimiter handling."""

    def test_delimited_with_flags(self):
        pattern = compile_pattern("/^abc$/im")
        assert pattern.flags & re.IGNORECASE
        assert pattern.flags & re.MULTILINE
        assert pattern.search("x\nABC")

    def test_bracket_delimiters(self):
        assert compile_pattern("{^a+$}").search("aaa")
        assert compile_pattern("#^\\d+$#").search("123")

    def test_undelimited_pattern_used_verbatim(self):
        assert compile_pattern("^ab").search("abc")

    def test_search_semantics(self):
        run("regex", "xx123yy", "/\\d+/")

    def test_number_value_rendered_as_text(self):
        run("regex", 42, "/^\\d+$/")

    def test_boolean_rendered_as_one(self):
        run("regex", True, "/^1$/")
        with pytest.raises(FieldValidationError):
            run("regex", True, "/^True$/")

    def test_dollar_end_only(self):
        assert compile_pattern("/^a$/").search("a\n")
        assert compile_pattern("/^a$/D").search("a\n") is None
        assert compile_pattern("/^a$/D").search("a")
        assert compile_pattern("/^a$/Dm").search("a\nb")

    def test_dollar_in_class_kept_literal(self):
        assert compile_pattern("/^[$]+$/D").search("$$")

    def test_ungreedy(self):
        assert compile_pattern("/a+/U").search("aaa").group() == "a"
        assert compile_pattern("/a+?/U").search("aaa").group() == "aaa"
        assert compile_pattern("/<.{1,}>/U").search("<a><b>").group() == "<a>"
        assert compile_pattern("/(?:ab)*c/U").search("ababc").group() == "ababc"

    def test_anchored(self):
        assert compile_pattern("/b/").search("ab")
        assert compile_pattern("/b/A").search("ab") is None
        assert compile_pattern("/a|b/A").search("b")

    def test_study_modifier_accepted(self):
        assert compile_pattern("/abc/S").search("xabc")

    @pytest.mark.parametrize("pattern", ["(ab)+", "[a-z]+", "<a>"])
    def test_brackets_are_not_delimiters(self, pattern):
        assert compile_pattern(pattern).pattern == pattern

    @pytest.mark.parametrize("pattern", ["/a/X", "/a/J", "/a/n"])
    def test_unsupported_modifiers_rejected(self, pattern):
        with pytest.raises(ValueError, match="unknown modifier"):
            compile_pattern(pattern)

    def test_mismatch_message(self):
        with pytest.raises(FieldValidationError) as exc:
            run("regex", "m", "/^\\w{3}$/")
        assert exc.value.message == "The field 'f' not match regex '/^\\w{3}$/'"

    @pytest.mark.parametrize("parameter", ["/abc", "/abc/q", "/(/", "", None, 5])
    def test_bad_pattern(self, parameter):
        with pytest.raises(InvalidRuleParameter):
            run("regex", "abc", parameter)

    def test_requires_scalar(self):
        with pytest.raises(FieldValidationError):
            run("regex", ["abc"], "/abc/")


class TestNumbers:
    """Test numeric coercion of values and parameters."""

    @pytest.mark.parametrize("text,expected", [("3", 3), (" 12 ", 12), ("12.5", 12.5), ("-1e2", -100.0)])
    def test_numeric_strings(self, text, expected):
        assert as_number(text) == expected

    @pytest.mark.parametrize("text", ["nan", "inf", "1,5", "a1", ""])
    def test_non_numeric_strings(self, text):
        assert as_number(text) is None
