"""System size (kW) helpers shared by quotations and site visit exports.

Sub-1 kW systems keep their decimals (0.68 stays 0.68); anything larger is
rounded half-up to a whole kW (1.64 -> 2, 3.49 -> 3, 3.50 -> 4).
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Union

_NON_DIGITS = re.compile(r"[^\d]")

Number = Union[int, float]


def _half_up(value: Number, places: str) -> Decimal:
    return Decimal(str(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP)


def parse_panel_watts(value: Any) -> int:
    """'540W', '540' and 540 all give 540; anything without digits gives 0."""

    if value is None:
        return 0
    digits = _NON_DIGITS.sub("", str(value).strip())
    return int(digits) if digits else 0


def system_kw(panel_watts: Any, panel_count: Any) -> float:
    """(watts x count) / 1000 to 2dp; 0 for missing or non-positive input."""

    watts = parse_panel_watts(panel_watts) if isinstance(panel_watts, str) else panel_watts
    try:
        watts = float(watts or 0)
        count = float(panel_count or 0)
    except (TypeError, ValueError):
        return 0.0
    if watts <= 0 or count <= 0:
        return 0.0
    return float(_half_up(watts * count / 1000, "0.01"))


def round_system_kw(kw: Number) -> Number:
    if kw <= 0:
        return 0
    if kw < 1:
        return kw
    return int(_half_up(kw, "1"))


def format_kw(kw: Number) -> str:
    if kw < 1:
        text = f"{kw:.2f}".rstrip("0").rstrip(".")
        return text or "0"
    return str(round_system_kw(kw))
