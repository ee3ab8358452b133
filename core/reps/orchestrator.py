from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Protocol

from core.reps.accounts import is_valid_account, normalize_account, to_decimal
from core.reps.errors import SourceTransportError
from core.reps.models import DelegateWeight, LedgerAccountInfo
from status_rules import compute_percent
from uptime_signals import SOURCE_ERROR, UptimeResult

logger = logging.getLogger(__name__)


class LedgerSource(Protocol):
    def account_info(self, account: str) -> LedgerAccountInfo:
        ...

    def representatives_online(self) -> Optional[Dict[str, Any]]:
        ...

    def confirmation_quorum(self) -> Optional[Dict[str, Any]]:
        ...


class CrawlerSource(Protocol):
    def representatives(self, min_weight: int, online_only: bool) -> Optional[List[dict]]:
        ...


class ReputationSource(Protocol):
    def account_reputation(self, account: str) -> UptimeResult:
        ...


@dataclass
class DelegateSnapshot:
    """Everything known about one delegate before classification."""

    delegate: DelegateWeight
    info: LedgerAccountInfo
    online: bool
    percent: Decimal
    uptime: UptimeResult


class ReputationSourceOrchestrator:
    def __init__(
        self,
        ledger: LedgerSource,
        reputation: ReputationSource,
        crawler: Optional[CrawlerSource] = None,
        *,
        max_workers: int = 8,
        crawler_min_weight: int = 100000,
    ):
        self.ledger = ledger
        self.reputation = reputation
        self.crawler = crawler
        self.max_workers = max_workers
        self.crawler_min_weight = crawler_min_weight

    # -------------------------
    # Individual sources
    # -------------------------

    def fetch_ledger_info(self, account: str) -> LedgerAccountInfo:
        return self.ledger.account_info(account)

    def fetch_online_set(self) -> List[str]:
        online = self._online_from_crawler()
        if online:
            return online

        try:
            reps = self.ledger.representatives_online()
        except SourceTransportError:
            logger.warning("representatives_online unavailable; treating all as offline", exc_info=True)
            return []
        if not reps:
            return []

        representatives = reps.get("representatives")
        if isinstance(representatives, dict):
            # legacy shape maps account -> account
            return [v if isinstance(v, str) and v else k for k, v in representatives.items()]
        if isinstance(representatives, list):
            return [str(r) for r in representatives]
        return []

    def _online_from_crawler(self) -> List[str]:
        if not self.crawler:
            return []
        try:
            crawler_reps = self.crawler.representatives(self.crawler_min_weight, True)
        except SourceTransportError:
            logger.warning("Crawler unavailable; falling back to RPC online list", exc_info=True)
            return []
        if not isinstance(crawler_reps, list) or not crawler_reps:
            return []

        online = (normalize_account(rep.get("address")) for rep in crawler_reps if rep.get("online"))
        return [account for account in online if is_valid_account(account)]

    def fetch_quorum(self) -> Optional[Decimal]:
        """Online stake total in raw, or None when the node does not report it."""
        try:
            quorum = self.ledger.confirmation_quorum()
        except SourceTransportError:
            logger.warning("confirmation_quorum unavailable; weight shares will be 0", exc_info=True)
            return None
        if not quorum or not quorum.get("online_stake_total"):
            return None
        try:
            return to_decimal(quorum["online_stake_total"])
        except InvalidOperation:
            logger.warning("confirmation_quorum returned a non-numeric online_stake_total")
            return None

    def fetch_uptime(self, account: str) -> UptimeResult:
        try:
            return self.reputation.account_reputation(account)
        except SourceTransportError:
            logger.warning("Uptime lookup failed for %s", account, exc_info=True)
            return SOURCE_ERROR

    # -------------------------
    # Fan-out / join
    # -------------------------

    def collect(self, delegates: List[DelegateWeight]) -> List[DelegateSnapshot]:
        """
        Query every source concurrently and join the answers per delegate.

        Ledger lookups are all-or-nothing: the first failure cancels what is
        still queued and is raised. Output order follows `delegates`.
        """
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="rep-sources")
        try:
            info_futures: List[Future] = [executor.submit(self.fetch_ledger_info, d.id) for d in delegates]
            online_future = executor.submit(self.fetch_online_set)
            quorum_future = executor.submit(self.fetch_quorum)
            uptime_futures: List[Future] = [executor.submit(self.fetch_uptime, d.id) for d in delegates]

            if info_futures:
                wait(info_futures, return_when=FIRST_EXCEPTION)
            for future in info_futures:
                if future.done() and future.exception() is not None:
                    for pending in [*info_futures, online_future, quorum_future, *uptime_futures]:
                        pending.cancel()
                    raise future.exception()

            infos: List[LedgerAccountInfo] = [f.result() for f in info_futures]
            online = set(online_future.result())
            online_stake_total = quorum_future.result()
            uptimes: List[UptimeResult] = [f.result() for f in uptime_futures]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info(
            "Collected %s delegates (online=%s, online_stake_total=%s)",
            len(delegates), len(online), online_stake_total,
        )

        return [
            DelegateSnapshot(
                delegate=delegate,
                info=info,
                online=delegate.id in online,
                percent=compute_percent(info.weight, online_stake_total),
                uptime=uptime,
            )
            for delegate, info, uptime in zip(delegates, infos, uptimes)
        ]
