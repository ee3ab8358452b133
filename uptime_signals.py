# uptime_signals.py
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union


class UptimeSignal(enum.Enum):
    # provider answered 404: the representative is not tracked
    NOT_FOUND = "not_found"
    # provider unreachable or answered with something unusable
    SOURCE_ERROR = "source_error"


NOT_FOUND = UptimeSignal.NOT_FOUND
SOURCE_ERROR = UptimeSignal.SOURCE_ERROR


@dataclass
class UptimeRecord:
    account: str

    # participation percentages over the last day / week / month
    day: float
    week: float
    month: float

    score: Optional[float] = None
    last_voted: Optional[datetime] = None
    closing: bool = False

    alias: Optional[str] = None
    donation_address: Optional[str] = None


UptimeResult = Union[UptimeRecord, UptimeSignal]


def _parse_date(d: Optional[str]) -> Optional[datetime]:
    if not d:
        return None
    try:
        parsed = datetime.fromisoformat(str(d).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _pct(v: Any) -> float:
    return float(v) if v is not None else 0.0


def build_uptime_record(payload: Dict[str, Any]) -> UptimeRecord:
    """
    Map a reputation provider account payload into an UptimeRecord.

    Raises ValueError when the payload does not look like an account record.
    """
    if not isinstance(payload, dict):
        raise ValueError("uptime payload must be an object")
    uptime_over = payload.get("uptime_over")
    if not isinstance(uptime_over, dict):
        raise ValueError("uptime payload is missing uptime_over")

    donation = payload.get("donation") or {}
    score = payload.get("score")

    return UptimeRecord(
        account=str(payload.get("account") or ""),
        day=_pct(uptime_over.get("day")),
        week=_pct(uptime_over.get("week")),
        month=_pct(uptime_over.get("month")),
        score=float(score) if score is not None else None,
        last_voted=_parse_date(payload.get("lastVoted")),
        closing=payload.get("closing") is True,
        alias=payload.get("alias") or None,
        donation_address=donation.get("account") if isinstance(donation, dict) else None,
    )


def is_record(result: UptimeResult) -> bool:
    return isinstance(result, UptimeRecord)
