# roadmaster/utils/values.py
"""
Small helpers for reading loosely-typed JSON records.

None of these raise: anything unusable collapses to the caller's default.
"""
import math
import time
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Union
from uuid import uuid4

Number = Union[int, float]


def current_millis() -> int:
    return int(time.time() * 1000)


def today_iso() -> str:
    return date.today().isoformat()


def generate_id(prefix: str, *, unique_suffix: bool = False) -> str:
    '''
    Build a record id of the form "{prefix}-{millis}".

    :param prefix: id prefix such as "mat", "veh", "inv"
    :param unique_suffix: append a short random suffix so that ids minted in
        the same millisecond stay distinct (batch migrations)
    '''
    base = f"{prefix}-{current_millis()}"
    if unique_suffix:
        return f"{base}-{uuid4().hex[:9]}"
    return base


def to_number(value: Any) -> Optional[Number]:
    '''
    Coerce a JSON value to int/float, or None when it is not numeric.
    Booleans, NaN and infinities are rejected.
    '''
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = float(text)
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        return int(parsed) if parsed.is_integer() else parsed
    return None


def num(value: Any, default: Number = 0) -> Number:
    coerced = to_number(value)
    return default if coerced is None else coerced


def first_number(record: Mapping[str, Any], keys: Iterable[str], default: Number) -> Number:
    '''
    First alias whose value is present (not None) and numeric.
    Present but malformed values are skipped.
    '''
    for key in keys:
        coerced = to_number(record.get(key))
        if coerced is not None:
            return coerced
    return default


def first_text(record: Mapping[str, Any], keys: Iterable[str], default: str = "") -> str:
    '''First alias holding a non-empty string (numbers are stringified).'''
    for key in keys:
        value = record.get(key)
        if value is None or isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            value = str(value)
        if isinstance(value, str) and value.strip():
            return value
    return default


def first_present(record: Mapping[str, Any], keys: Iterable[str], default: Any = None) -> Any:
    '''First alias whose value is not None, whatever its type.'''
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return default
