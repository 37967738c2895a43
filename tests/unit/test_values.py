"""Tests for structured metadata values."""

import math
from collections import deque
from fractions import Fraction

import pytest
from hypothesis import given
from hypothesis import strategies as st

from chroniclepy.core.values import (
    NULL,
    ArrayValue,
    BoolValue,
    FloatValue,
    IntegerValue,
    MapValue,
    StringValue,
    StructuredValue,
    format_float,
)

pytestmark = [pytest.mark.tier(0), pytest.mark.tra("Core.StructuredValue")]


class TestRender:
    """Tests for canonical rendering of each variant."""

    @pytest.mark.core
    def test_string_is_quoted(self) -> None:
        """Strings render double-quoted."""
        assert StringValue("hello").render() == '"hello"'

    @pytest.mark.core
    def test_string_escapes_control_characters(self) -> None:
        """Backslash, quote, newline, carriage return and tab are escaped."""
        value = StringValue('a\\b"c\nd\re\tf')
        assert value.render() == '"a\\\\b\\"c\\nd\\re\\tf"'

    @pytest.mark.core
    def test_integer(self) -> None:
        assert IntegerValue(-42).render() == "-42"

    @pytest.mark.core
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1.50, "1.5"), (2.0, "2"), (0.25, "0.25"), (-3.0, "-3"), (100.0, "100")],
    )
    def test_float_trims_trailing_zeros(self, value: float, expected: str) -> None:
        """Floats drop trailing fractional zeros and a bare decimal point."""
        assert FloatValue(value).render() == expected

    @pytest.mark.core
    def test_float_exponent_form_is_untouched(self) -> None:
        """Exponent forms are not trimmed."""
        assert FloatValue(1.5e100).render() == "1.5e+100"

    @pytest.mark.core
    def test_float_non_finite(self) -> None:
        assert FloatValue(math.inf).render() == "inf"
        assert FloatValue(math.nan).render() == "nan"

    @pytest.mark.core
    def test_bool_and_null(self) -> None:
        assert BoolValue(True).render() == "true"
        assert BoolValue(False).render() == "false"
        assert NULL.render() == "null"

    @pytest.mark.core
    def test_array_has_no_spaces(self) -> None:
        value = ArrayValue((IntegerValue(1), StringValue("a"), NULL))
        assert value.render() == '[1,"a",null]'

    @pytest.mark.core
    def test_map_sorts_keys(self) -> None:
        """Maps render keys in ascending order regardless of build order."""
        value = MapValue.of({"zeta": IntegerValue(1), "alpha": IntegerValue(2), "_x": NULL})
        assert value.render() == '{"_x":null,"alpha":2,"zeta":1}'

    @pytest.mark.core
    def test_map_escapes_keys(self) -> None:
        value = MapValue.of({'a"b': BoolValue(True)})
        assert value.render() == '{"a\\"b":true}'

    @pytest.mark.core
    def test_nested_structure(self) -> None:
        value = StructuredValue.from_dynamic({"b": [1, 2.50], "a": {"y": None, "x": "s"}})
        assert value.render() == '{"a":{"x":"s","y":null},"b":[1,2.5]}'


class TestFromDynamic:
    """Tests for conversion of arbitrary Python values."""

    @pytest.mark.core
    def test_bool_is_not_an_integer(self) -> None:
        """bool is recognised before int."""
        assert StructuredValue.from_dynamic(True) == BoolValue(True)

    @pytest.mark.core
    def test_integers_and_floats(self) -> None:
        assert StructuredValue.from_dynamic(7) == IntegerValue(7)
        assert StructuredValue.from_dynamic(2**70) == IntegerValue(2**70)
        assert StructuredValue.from_dynamic(0.5) == FloatValue(0.5)
        assert StructuredValue.from_dynamic(Fraction(1, 4)) == FloatValue(0.25)

    @pytest.mark.core
    def test_none_is_null(self) -> None:
        assert StructuredValue.from_dynamic(None) == NULL

    @pytest.mark.core
    def test_sequences_become_arrays(self) -> None:
        assert StructuredValue.from_dynamic((1, "a")) == ArrayValue(
            (IntegerValue(1), StringValue("a"))
        )

    @pytest.mark.core
    def test_any_sequence_becomes_array(self) -> None:
        assert StructuredValue.from_dynamic(range(3)).render() == "[0,1,2]"
        assert StructuredValue.from_dynamic(deque([1, "a"])).render() == '[1,"a"]'

    @pytest.mark.core
    def test_sets_are_ordered_by_rendering(self) -> None:
        """Sets convert deterministically."""
        value = StructuredValue.from_dynamic({"b", "c", "a"})
        assert value.render() == '["a","b","c"]'

    @pytest.mark.core
    def test_mapping_keys_are_stringified(self) -> None:
        value = StructuredValue.from_dynamic({1: "one"})
        assert value.render() == '{"1":"one"}'

    @pytest.mark.core
    def test_bytes_are_decoded(self) -> None:
        assert StructuredValue.from_dynamic(b"abc") == StringValue("abc")

    @pytest.mark.core
    def test_unknown_type_uses_str(self) -> None:
        """Unrecognised objects fall back to their textual representation."""

        class Point:
            def __str__(self) -> str:
                return "Point(1, 2)"

        assert StructuredValue.from_dynamic(Point()) == StringValue("Point(1, 2)")

    @pytest.mark.core
    def test_failing_str_never_raises(self) -> None:
        class Broken:
            def __str__(self) -> str:
                raise RuntimeError("boom")

        value = StructuredValue.from_dynamic(Broken())
        assert value == StringValue("<unrepresentable Broken>")

    @pytest.mark.core
    def test_cycles_are_cut(self) -> None:
        items: list[object] = [1]
        items.append(items)
        assert StructuredValue.from_dynamic(items).render() == '[1,"<cycle>"]'

    @pytest.mark.core
    def test_structured_value_protocol(self) -> None:
        """Objects providing __structured_value__ convert themselves."""

        class Money:
            def __structured_value__(self) -> StructuredValue:
                return MapValue.of({"amount": IntegerValue(5), "currency": StringValue("EUR")})

        value = StructuredValue.from_dynamic(Money())
        assert value.render() == '{"amount":5,"currency":"EUR"}'

    @pytest.mark.core
    def test_structured_values_pass_through(self) -> None:
        value = IntegerValue(3)
        assert StructuredValue.from_dynamic(value) is value


class TestMapValue:
    """Tests for MapValue behaviour."""

    @pytest.mark.core
    def test_equality_ignores_insertion_order(self) -> None:
        first = MapValue.of({"a": IntegerValue(1), "b": IntegerValue(2)})
        second = MapValue.of({"b": IntegerValue(2), "a": IntegerValue(1)})
        assert first == second
        assert hash(first) == hash(second)

    @pytest.mark.core
    def test_lookup(self) -> None:
        value = MapValue.of({"a": IntegerValue(1)})
        assert value["a"] == IntegerValue(1)
        assert "a" in value
        assert value.get("missing") is None
        with pytest.raises(KeyError):
            value["missing"]

    @pytest.mark.core
    def test_to_python(self) -> None:
        value = StructuredValue.from_dynamic({"a": [1, 2.5, True, None, "x"]})
        assert value.to_python() == {"a": [1, 2.5, True, None, "x"]}


class TestRenderProperties:
    """Property-based tests for rendering determinism."""

    @pytest.mark.core
    @given(
        st.dictionaries(
            st.text(max_size=10),
            st.one_of(st.integers(), st.booleans(), st.text(max_size=10), st.none()),
            max_size=8,
        )
    )
    def test_map_render_independent_of_insertion_order(self, data: dict) -> None:
        """Map-equal inputs built in different orders render identically."""
        forward = StructuredValue.from_dynamic(data)
        backward = StructuredValue.from_dynamic(dict(reversed(list(data.items()))))
        assert forward.render() == backward.render()

    @pytest.mark.core
    @given(st.floats(allow_nan=False, allow_infinity=False))
    def test_float_render_has_no_trailing_zero_or_point(self, value: float) -> None:
        """Rendered floats never end in a fractional zero or a bare point."""
        text = format_float(value)
        if "e" not in text and "." in text:
            assert not text.endswith("0")
        assert not text.endswith(".")
        assert float(text) == value
