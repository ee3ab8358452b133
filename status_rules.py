# status_rules.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from core.reps.accounts import DECIMAL_CONTEXT, raw_to_whole
from core.reps.models import FullOverview, KnownEntry, RepresentativeStatus, StatusText
from uptime_signals import NOT_FOUND, UptimeRecord, UptimeResult


VERY_HIGH_WEIGHT_PCT = Decimal(10)
HIGH_WEIGHT_PCT = Decimal(5)

UPTIME_INTERVAL_DAYS = 7
VERY_LOW_UPTIME_PCT = 50
LOW_UPTIME_PCT = 60
# a representative seen online right now is credited at least this much uptime
ONLINE_MIN_UPTIME_PCT = 1

_SECONDS_PER_DAY = 86400


@dataclass
class Classification:
    status_text: StatusText
    label: Optional[str]
    status: RepresentativeStatus
    donation_address: Optional[str] = None


def compute_percent(weight_raw: Any, online_stake_total_raw: Any) -> Decimal:
    """
    Share of the online stake held by a representative, in percent.

    A missing or zero online stake total yields 0 rather than a division error.
    """
    if online_stake_total_raw is None:
        return Decimal(0)
    total = raw_to_whole(online_stake_total_raw)
    if not total:
        return Decimal(0)
    weight = raw_to_whole(weight_raw)
    return DECIMAL_CONTEXT.multiply(DECIMAL_CONTEXT.divide(weight, total), Decimal(100))


def _days_since(last_voted: Optional[datetime], now: datetime) -> int:
    if not last_voted:
        return 0
    return math.floor((now - last_voted).total_seconds() / _SECONDS_PER_DAY)


def classify_representative(
    *,
    percent: Decimal,
    online: bool,
    uptime: UptimeResult,
    known: Optional[KnownEntry] = None,
    blocklisted: bool = False,
    now: Optional[datetime] = None,
) -> Classification:
    """
    Decide the status tier and flags of one representative.

    Steps run in a fixed order; later steps may replace the tier but only
    clear flags where stated (trusted clears warn/change_required, nothing
    clears marked_as_nf).
    """
    now = now or datetime.now(timezone.utc)
    status = RepresentativeStatus(online=bool(online))
    status_text: StatusText = "none"
    label: Optional[str] = None
    record = uptime if isinstance(uptime, UptimeRecord) else None

    # -------------------------
    # Voting weight share
    # -------------------------
    if percent >= VERY_HIGH_WEIGHT_PCT:
        status_text = "alert"
        status.very_high_weight = True
        status.change_required = True
    elif percent >= HIGH_WEIGHT_PCT:
        status_text = "warn"
        status.high_weight = True

    # -------------------------
    # Hardcoded non-functional representatives
    # -------------------------
    if blocklisted:
        status.marked_as_nf = True
        status.change_required = True
        status.warn = True
        status_text = "alert"

    # -------------------------
    # User's known list, then provider alias
    # -------------------------
    if known:
        status_text = "ok" if status_text == "none" else status_text
        label = known.name
        status.known = True
        if known.trusted:
            status_text = "trusted"
            status.trusted = True
            status.change_required = False
            status.warn = False
        if known.warn:
            status_text = "alert"
            status.marked_to_avoid = True
            status.warn = True
            status.change_required = True
    elif record and record.alias:
        status_text = "ok" if status_text == "none" else status_text
        label = record.alias

    # -------------------------
    # Uptime (never for trusted representatives)
    # -------------------------
    if status.trusted:
        pass
    elif record:
        if record.closing:
            status_text = "alert"
            status.closing = True
            status.warn = True
            status.change_required = True

        uptime_value = max(record.week, record.day / UPTIME_INTERVAL_DAYS)
        if online:
            uptime_value = max(uptime_value, ONLINE_MIN_UPTIME_PCT)

        status.uptime = uptime_value
        status.score = record.score

        status.days_since_last_voted = _days_since(record.last_voted, now)
        if uptime_value == 0:
            status.days_since_last_voted = max(status.days_since_last_voted, UPTIME_INTERVAL_DAYS)

        if uptime_value < VERY_LOW_UPTIME_PCT:
            status_text = "alert"
            status.very_low_uptime = True
            status.warn = True
            status.change_required = True
        elif uptime_value < LOW_UPTIME_PCT:
            if status_text != "alert":
                status_text = "warn"
            status.low_uptime = True
            status.warn = True
    elif uptime is NOT_FOUND:
        status_text = "alert"
        status.uptime = 0
        status.very_low_uptime = True
        status.days_since_last_voted = UPTIME_INTERVAL_DAYS
        status.warn = True
        status.change_required = True
    else:
        status_text = "unknown" if status_text == "none" else status_text

    return Classification(
        status_text=status_text,
        label=label,
        status=status,
        donation_address=record.donation_address if record else None,
    )


def needs_change(status: RepresentativeStatus) -> bool:
    if status.trusted:
        return False
    return (
        status.high_weight
        or status.very_high_weight
        or status.low_uptime
        or status.very_low_uptime
        or status.warn
    )


def detect_changeable(overviews: Iterable[FullOverview]) -> List[FullOverview]:
    """Representatives a wallet should move away from, in input order."""
    return [rep for rep in overviews if needs_change(rep.status)]
