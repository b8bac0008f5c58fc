from __future__ import annotations

import re
from collections.abc import Iterable
from decimal import Decimal
from functools import total_ordering
from typing import Any

from pydantic import GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema

from ..errors import InvalidAmount

_DIGITS = re.compile(r"[0-9]+")

WEI_PER_ETHER = 10**18


def _to_digits(wei: int) -> str:
    try:
        return str(wei)
    except ValueError:
        # Past sys.get_int_max_str_digits(); decimal converts without that cap
        return str(Decimal(wei))


def _from_digits(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        return int(Decimal(raw))


@total_ordering
class MonetaryValue:
    """Non-negative integer amount in wei.

    Backed by a Python ``int`` so values far beyond 64 bits are exact. The
    canonical text form is the base-10 digit string without leading zeros,
    which is also what pydantic serializes. Text conversion is not bound by
    the interpreter's int/str digit limit.
    """

    __slots__ = ("_wei",)

    def __init__(self, wei: int = 0) -> None:
        if isinstance(wei, bool) or not isinstance(wei, int):
            raise TypeError(f"MonetaryValue requires an int, got {type(wei).__name__}")
        if wei < 0:
            raise InvalidAmount(wei)
        self._wei = wei

    @classmethod
    def parse(cls, raw: str) -> MonetaryValue:
        # int() alone would also accept signs, whitespace, underscores and
        # non-ASCII digits
        if not isinstance(raw, str) or not _DIGITS.fullmatch(raw):
            raise InvalidAmount(raw)
        return cls(_from_digits(raw))

    @classmethod
    def zero(cls) -> MonetaryValue:
        return cls(0)

    @property
    def wei(self) -> int:
        return self._wei

    def divide(self, count: int) -> MonetaryValue:
        """Truncating division by a positive count."""
        if count <= 0:
            raise ValueError("count must be positive")
        return MonetaryValue(self._wei // count)

    def to_ether(self) -> Decimal:
        return Decimal(self._wei).scaleb(-18)

    def __add__(self, other: object) -> MonetaryValue:
        if not isinstance(other, MonetaryValue):
            return NotImplemented
        return MonetaryValue(self._wei + other._wei)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MonetaryValue):
            return NotImplemented
        return self._wei == other._wei

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, MonetaryValue):
            return NotImplemented
        return self._wei < other._wei

    def __hash__(self) -> int:
        return hash(self._wei)

    def __copy__(self) -> MonetaryValue:
        return self

    def __deepcopy__(self, _memo: dict[int, Any]) -> MonetaryValue:
        return self

    def __bool__(self) -> bool:
        return self._wei != 0

    def __str__(self) -> str:
        return _to_digits(self._wei)

    def __repr__(self) -> str:
        return f"MonetaryValue('{self}')"

    @classmethod
    def __get_pydantic_core_schema__(
        cls, _source: Any, _handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        from_str = core_schema.no_info_after_validator_function(
            cls.parse, core_schema.str_schema(strict=True)
        )
        return core_schema.json_or_python_schema(
            json_schema=from_str,
            python_schema=core_schema.union_schema(
                [core_schema.is_instance_schema(cls), from_str]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls, _core_schema: core_schema.CoreSchema, _handler: GetJsonSchemaHandler
    ) -> JsonSchemaValue:
        return {"type": "string", "pattern": "^[0-9]+$", "description": "amount in wei"}


def total(values: Iterable[MonetaryValue]) -> MonetaryValue:
    return sum(values, MonetaryValue.zero())
