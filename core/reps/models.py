from __future__ import annotations

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


StatusText = Literal["none", "ok", "warn", "alert", "trusted", "unknown"]


class Account(BaseModel):
    id: str
    balance: Decimal = Decimal(0)  # raw
    representative: Optional[str] = None


class DelegateWeight(BaseModel):
    id: str
    weight: Decimal
    accounts: List[Account] = Field(default_factory=list)


class KnownEntry(BaseModel):
    id: str
    name: str
    trusted: bool = False
    warn: bool = False

    def to_stored(self) -> dict:
        # flags are only written when set, matching the legacy stored layout
        return self.model_dump(exclude_defaults=True)


class LedgerAccountInfo(BaseModel):
    """Subset of the ledger `account_info` response; unknown fields are kept."""

    model_config = ConfigDict(extra="allow")

    frontier: Optional[str] = None
    open_block: Optional[str] = None
    representative_block: Optional[str] = None
    balance: Decimal = Decimal(0)
    modified_timestamp: Optional[int] = None
    block_count: Optional[int] = None
    representative: Optional[str] = None
    weight: Decimal = Decimal(0)
    pending: Optional[Decimal] = None
    receivable: Optional[Decimal] = None


class RepresentativeStatus(BaseModel):
    online: bool = False
    very_high_weight: bool = False
    high_weight: bool = False
    very_low_uptime: bool = False
    low_uptime: bool = False
    closing: bool = False
    marked_to_avoid: bool = False
    marked_as_nf: bool = False
    trusted: bool = False
    change_required: bool = False
    warn: bool = False
    known: bool = False
    days_since_last_voted: int = 0
    uptime: Optional[float] = None
    score: Optional[float] = None


class FullOverview(BaseModel):
    id: str
    account: str

    # ledger account_info fields
    balance: Decimal = Decimal(0)
    pending: Optional[Decimal] = None
    weight: Decimal = Decimal(0)
    representative: Optional[str] = None
    block_count: Optional[int] = None
    frontier: Optional[str] = None
    modified_timestamp: Optional[int] = None

    # wallet side
    delegated_weight: Decimal
    accounts: List[Account] = Field(default_factory=list)

    # classification
    percent: Decimal = Decimal(0)
    status_text: StatusText = "none"
    label: Optional[str] = None
    status: RepresentativeStatus = Field(default_factory=RepresentativeStatus)
    donation_address: Optional[str] = None
