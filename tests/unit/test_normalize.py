import datetime
import uuid
from decimal import Decimal

import pytest

from querygate_adapter_sdk import ValueDecodeError
from querygate_adapter_sdk.normalize import (
    decode_boolean,
    decode_float,
    decode_integer,
    decode_string,
    decode_typed,
    decode_with_fallback,
    normalize_documents,
    to_generic,
)


class TestDecoders:
    def test_string_accepts_text_like_values(self):
        assert decode_string("abc") == "abc"
        assert decode_string(b"caf\xc3\xa9") == "café"
        assert decode_string(datetime.date(2024, 1, 31)) == "2024-01-31"
        assert decode_string(uuid.UUID(int=1)) == "00000000-0000-0000-0000-000000000001"

    def test_string_rejects_numbers_and_bad_bytes(self):
        with pytest.raises(ValueDecodeError):
            decode_string(42)
        with pytest.raises(ValueDecodeError):
            decode_string(b"\xff\xfe")

    def test_integer(self):
        assert decode_integer(7) == 7
        assert decode_integer(Decimal("12")) == 12
        with pytest.raises(ValueDecodeError):
            decode_integer(Decimal("1.5"))
        with pytest.raises(ValueDecodeError):
            decode_integer("7")

    def test_float(self):
        assert decode_float(Decimal("1.25")) == 1.25
        assert decode_float(3) == 3.0
        with pytest.raises(ValueDecodeError):
            decode_float(True)

    def test_boolean(self):
        assert decode_boolean(True) is True
        assert decode_boolean(0) is False
        with pytest.raises(ValueDecodeError):
            decode_boolean(2)


class TestFallback:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("text", "text"),
            (5, 5),
            (Decimal("2.5"), 2.5),
            (None, None),
            (object(), None),
        ],
    )
    def test_chain_order(self, value, expected):
        assert decode_with_fallback(value) == expected

    def test_integral_decimal_stays_integer(self):
        assert decode_with_fallback(Decimal("10")) == 10
        assert isinstance(decode_with_fallback(Decimal("10")), int)


class TestTypedDecode:
    def test_declared_types(self):
        assert decode_typed(1, "BOOL") is True
        assert decode_typed(Decimal("3"), "int8") == 3
        assert decode_typed(Decimal("3.5"), "NUMERIC") == 3.5
        assert decode_typed("x", "VARCHAR") == "x"

    def test_unknown_type_decodes_as_string(self):
        assert decode_typed(datetime.date(2024, 5, 1), "DATE") == "2024-05-01"
        assert decode_typed("raw", None) == "raw"

    def test_decode_failure_becomes_null(self):
        assert decode_typed("not a number", "INT4") is None
        assert decode_typed(12, "UNKNOWN") is None


def test_to_generic():
    assert to_generic(Decimal("1.5")) == 1.5
    assert to_generic(datetime.datetime(2024, 1, 1, 12, 0)) == "2024-01-01T12:00:00"
    assert to_generic({"a": 1}) == '{"a": 1}'


def test_normalize_documents_unions_sorted_columns():
    documents = [{"b": 1, "a": "x"}, {"c": True}]

    columns, rows = normalize_documents(documents)

    assert columns == ["a", "b", "c"]
    assert rows == [["x", 1, None], [None, None, True]]


def test_normalize_documents_empty():
    assert normalize_documents([]) == ([], [])
