from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, FrozenSet, Iterable, List, Optional, Protocol

from core.reps.aggregation import unique_representatives
from core.reps.broadcast import Broadcast
from core.reps.known_list import KnownListManager
from core.reps.models import Account, FullOverview
from core.reps.orchestrator import DelegateSnapshot, ReputationSourceOrchestrator
from status_rules import Classification, classify_representative, detect_changeable

logger = logging.getLogger(__name__)


class AccountsProvider(Protocol):
    def get_accounts_details(self) -> List[Account]:
        ...


def build_overview(snapshot: DelegateSnapshot, classification: Classification) -> FullOverview:
    info = snapshot.info
    pending = info.pending if info.pending is not None else info.receivable
    return FullOverview(
        id=snapshot.delegate.id,
        account=snapshot.delegate.id,
        balance=info.balance,
        pending=pending,
        weight=info.weight,
        representative=info.representative,
        block_count=info.block_count,
        frontier=info.frontier,
        modified_timestamp=info.modified_timestamp,
        delegated_weight=snapshot.delegate.weight,
        accounts=list(snapshot.delegate.accounts),
        percent=snapshot.percent,
        status_text=classification.status_text,
        label=classification.label,
        status=classification.status,
        donation_address=classification.donation_address,
    )


class RepresentativeSession:
    """
    State of one wallet's representative monitoring.

    Owns the known list and the overview / changeable broadcasts. A failed
    overview computation raises and leaves the last published lists in place.
    """

    def __init__(
        self,
        *,
        orchestrator: ReputationSourceOrchestrator,
        known_list: KnownListManager,
        accounts: Optional[AccountsProvider] = None,
        blocklist: Iterable[str] = (),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.orchestrator = orchestrator
        self.known_list = known_list
        self.accounts = accounts
        self.blocklist: FrozenSet[str] = frozenset(blocklist)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.overview: Broadcast[List[FullOverview]] = Broadcast("representative_overview", [])
        self.changeable: Broadcast[List[FullOverview]] = Broadcast("changeable_representatives", [])

    def get_overview(self, accounts: Optional[List[Account]] = None) -> List[FullOverview]:
        if accounts is None:
            if self.accounts is None:
                raise ValueError("No accounts given and no accounts provider configured")
            accounts = self.accounts.get_accounts_details()

        delegates = unique_representatives(accounts)
        self.known_list.load()
        snapshots = self.orchestrator.collect(delegates)

        now = self.clock()
        overviews = [self._classify(snapshot, now) for snapshot in snapshots]

        self.overview.publish(overviews)
        return overviews

    def detect_changeable(
        self,
        cached: Optional[List[FullOverview]] = None,
        accounts: Optional[List[Account]] = None,
    ) -> List[FullOverview]:
        overviews = cached if cached is not None else self.get_overview(accounts)
        changeable = detect_changeable(overviews)
        logger.info("%s of %s representatives need a change", len(changeable), len(overviews))

        self.changeable.publish(changeable)
        return changeable

    def reset(self) -> None:
        self.overview.publish([])
        self.changeable.publish([])

    def _classify(self, snapshot: DelegateSnapshot, now: datetime) -> FullOverview:
        account = snapshot.delegate.id
        classification = classify_representative(
            percent=snapshot.percent,
            online=snapshot.online,
            uptime=snapshot.uptime,
            known=self.known_list.get(account),
            blocklisted=account in self.blocklist,
            now=now,
        )
        return build_overview(snapshot, classification)

