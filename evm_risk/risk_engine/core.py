from decimal import Decimal
from typing import Iterable, Sequence

from ..schemas import RiskFlag
from .weights import W


def fmt_amount(d: Decimal, places=4) -> str:
    # decimales fijos, sin notación científica
    q = Decimal(10) ** -places
    try:
        return format(d.quantize(q), "f")
    except Exception:
        return "0." + "0" * places


def aggregate(flags: Iterable[RiskFlag]) -> int:
    total = sum(f.risk for f in flags)
    return int(max(0, min(total, W.SCORE_MAX)))


def risk_level(score: int) -> str:
    return "High" if score >= W.LEVEL_HIGH else ("Medium" if score >= W.LEVEL_MEDIUM else "Low")


def build_summary(level: str, flags: Sequence[RiskFlag]) -> str:
    if not flags:
        return "No risk signals detected in the analyzed transactions."
    top = ", ".join(sorted({f.type.value for f in flags}))
    return f"{level} risk. Main signals: {top}."
