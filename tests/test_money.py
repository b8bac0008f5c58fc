from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from nftstats.errors import InvalidAmount
from nftstats.models.market import PricePoint
from nftstats.models.money import MonetaryValue, total

BIG = "123456789012345678901234567890"  # well past 2**64


def test_parse_round_trip_is_canonical() -> None:
    v = MonetaryValue.parse("000123")
    assert str(v) == "123"
    assert MonetaryValue.parse(str(v)) == v
    assert str(MonetaryValue.parse("0")) == "0"
    assert str(MonetaryValue.parse("0000")) == "0"
    assert str(MonetaryValue.parse(BIG)) == BIG


@pytest.mark.parametrize(
    "raw",
    ["", "-1", "1.5", " 1", "1 ", "+1", "1_000", "abc", "0x10", "1e18", "١٢"],
)
def test_parse_rejects_non_integers(raw: str) -> None:
    with pytest.raises(InvalidAmount) as exc_info:
        MonetaryValue.parse(raw)
    assert exc_info.value.raw == raw


def test_parse_rejects_non_strings() -> None:
    with pytest.raises(InvalidAmount):
        MonetaryValue.parse(100)  # type: ignore[arg-type]


def test_negative_construction_rejected() -> None:
    with pytest.raises(InvalidAmount):
        MonetaryValue(-1)


def test_add_beyond_64_bits() -> None:
    a = MonetaryValue.parse(BIG)
    s = a + a
    assert str(s) == "246913578024691357802469135780"
    assert s >= a
    assert total([MonetaryValue(1), MonetaryValue(2), MonetaryValue(3)]) == MonetaryValue(6)
    assert total([]) == MonetaryValue.zero()


def test_comparison_is_numeric_not_lexicographic() -> None:
    assert MonetaryValue.parse("10") > MonetaryValue.parse("9")
    assert MonetaryValue.parse("9") < MonetaryValue.parse("10")
    assert MonetaryValue.parse("07") == MonetaryValue.parse("7")
    assert max([MonetaryValue(9), MonetaryValue.parse(BIG), MonetaryValue(10)]) == MonetaryValue.parse(BIG)


def test_divide_truncates() -> None:
    assert str(MonetaryValue.parse("100").divide(3)) == "33"
    assert str(MonetaryValue.parse("2").divide(3)) == "0"
    a = MonetaryValue.parse(BIG)
    assert a.divide(1) == a
    with pytest.raises(ValueError):
        a.divide(0)


def test_to_ether_is_exact() -> None:
    assert MonetaryValue(1_500_000_000_000_000_000).to_ether() == Decimal("1.5")
    assert MonetaryValue(1).to_ether() == Decimal("1E-18")


def test_amounts_past_interpreter_digit_limit() -> None:
    raw = "9" * 5000
    v = MonetaryValue.parse(raw)
    assert str(v) == raw

    doubled = v + v
    assert str(doubled) == "1" + "9" * 4999 + "8"
    assert MonetaryValue.parse(str(doubled)) == doubled

    point = PricePoint.model_validate_json('{"asset_id": "1", "price": "%s", "timestamp": 0}' % raw)
    assert point.model_dump(mode="json")["price"] == raw


def test_pydantic_field_serializes_as_string() -> None:
    p = PricePoint(asset_id="1", price="42", timestamp=0)  # type: ignore[arg-type]
    assert p.price == MonetaryValue(42)
    assert p.model_dump(mode="json")["price"] == "42"
    assert PricePoint.model_validate_json('{"asset_id": "1", "price": "7", "timestamp": 1}').price == MonetaryValue(7)

    kept = PricePoint(asset_id="1", price=MonetaryValue(5), timestamp=0)
    assert kept.price == MonetaryValue(5)


@pytest.mark.parametrize("bad", ["-3", "1.0", 42])
def test_pydantic_field_rejects_invalid(bad: object) -> None:
    with pytest.raises(ValidationError):
        PricePoint(asset_id="1", price=bad, timestamp=0)  # type: ignore[arg-type]
