from __future__ import annotations

import re

import pandas as pd

DAY_BASIS = 360

# Day counts per tenor unit (30-day months, 360-day years).
TENOR_UNIT_DAYS = {"D": 1, "W": 7, "M": 30, "Y": 360}

# Excel 1900 serial of the reference portfolio's valuation date.
DEFAULT_EPOCH_OFFSET = 42940

EXCEL_EPOCH = pd.Timestamp("1900-01-01")

_TENOR_RE = re.compile(r"^(\d+)([A-Z])$")


def tenor_to_days(label: str) -> int:
    """
    Convert a tenor label such as "2W", "6M" or "1Y" into a whole day count.

    Raises ValueError on an unknown unit or malformed label.
    """
    m = _TENOR_RE.match(label.strip().upper())
    if m is None:
        raise ValueError(f"Malformed tenor label: {label!r}")

    n, unit = int(m.group(1)), m.group(2)
    if unit not in TENOR_UNIT_DAYS:
        raise ValueError(f"Unsupported tenor unit {unit!r} in {label!r}")
    return n * TENOR_UNIT_DAYS[unit]


def excel_serial(date) -> int:
    """
    Whole days elapsed since 1900-01-01 (the Excel-style epoch).

    Callers use this to derive an epoch offset explicitly; the engine never
    reads the clock itself.
    """
    return int((pd.Timestamp(date).normalize() - EXCEL_EPOCH).days)


def parse_signed_hex32(text: str) -> int:
    """Parse an 8-digit hex string as a two's complement 32-bit integer."""
    value = int(text, 16)
    if value >= 1 << 32:
        raise ValueError(f"Hex notional exceeds 32 bits: {text!r}")
    if value >= 1 << 31:
        value -= 1 << 32
    return value
