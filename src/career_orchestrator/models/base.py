"""Shared base model and strict scalar types for agent output contracts.

Model output is checked strictly: strings must be strings, numbers must be
JSON numbers and booleans must be booleans. Missing arrays fall back to
empty lists; nothing else is coerced.
"""

from __future__ import annotations

import math
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, StrictBool, StrictStr


def is_finite(value: int | float) -> bool:
    """False for inf and nan, which JSON parsing yields for 1e999 or NaN."""
    return isinstance(value, int) or math.isfinite(value)


def _number(value: object) -> object:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    if not is_finite(value):
        raise ValueError("must be a finite number")
    return value


def _integer(value: object) -> object:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be an integer")
    if not is_finite(value):
        raise ValueError("must be a finite number")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError("must be an integer")
    return int(value)


Text = StrictStr
Flag = StrictBool
Number = Annotated[float, BeforeValidator(_number)]
Integer = Annotated[int, BeforeValidator(_integer)]


class RecordModel(BaseModel):
    """Base for every record produced by an agent."""

    model_config = ConfigDict(extra="ignore")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (70.5 -> 71)."""
    if isinstance(value, int):
        return value
    return int(math.floor(value + 0.5))
