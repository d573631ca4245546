"""
Base schemas with standardized field types for consistent API responses.
"""

from datetime import time
from decimal import Decimal, InvalidOperation
import re
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer
from pydantic_core import core_schema

from ..utils.money import format_money

HHMM_REGEX = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class Money(Decimal):
    """Money field: parsed exactly, always serialized as a two-decimal string."""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def validate_money(value: Any) -> Decimal:
            if isinstance(value, bool):
                raise ValueError("Cannot convert bool to Money")
            if isinstance(value, float):
                value = repr(value)
            try:
                return Decimal(str(value)) if not isinstance(value, Decimal) else value
            except InvalidOperation as exc:
                raise ValueError(f"Invalid amount: {value!r}") from exc

        return core_schema.no_info_after_validator_function(
            validate_money,
            core_schema.union_schema(
                [
                    core_schema.int_schema(),
                    core_schema.float_schema(),
                    core_schema.str_schema(),
                    core_schema.is_instance_schema(Decimal),
                ]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(
                format_money,
                info_arg=False,
                return_schema=core_schema.str_schema(),
            ),
        )


def _parse_hhmm(value: object) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        match = HHMM_REGEX.fullmatch(candidate)
        if not match:
            raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")
        return time(int(match.group(1)), int(match.group(2)))
    return value


def _format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


ClockTime = Annotated[
    time,
    BeforeValidator(_parse_hhmm),
    PlainSerializer(_format_hhmm, return_type=str),
]
