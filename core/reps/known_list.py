"""
User-curated list of known representatives.

The list is stored as JSON under `store_key`. Lists saved by older wallet
versions under `legacy_store_key` are moved to the current key on first
load. Without any stored list, the defaults are used and replaced by
representatives reported by the crawler when it is reachable.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Callable, List, Optional, Protocol

from pydantic import ValidationError

from core.reps.accounts import is_valid_account, normalize_account, short_name
from core.reps.broadcast import Broadcast
from core.reps.errors import KnownListError, SourceTransportError
from core.reps.models import KnownEntry
from core.reps.storage import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_STORE_KEY = "banvault-representatives"
LEGACY_STORE_KEY = "nanovault-representatives"
DEFAULT_MIN_WEIGHT = 100000

_LEGACY_ID_PREFIX_RE = re.compile(r"^(xrb|nano)_", re.IGNORECASE)


class CrawlerSource(Protocol):
    def representatives(self, min_weight: int, online_only: bool) -> Optional[List[dict]]:
        ...


DEFAULT_REPRESENTATIVES: List[KnownEntry] = [
    KnownEntry(id="ban_1hootubxy68fhhrctjmaias148tz91tsse3pq1pgmfedsm3cubhobuihqnxd", name="ban_1hoot...hqnxd", trusted=True),
    KnownEntry(id="ban_1bananobh5rat99qfgt1ptpieie5swmoth87thi74qgbfrij7dcgjiij94xr", name="ban_1banan...94xr", trusted=True),
    KnownEntry(id="ban_1ka1ium4pfue3uxtntqsrib8mumxgazsjf58gidh1xeo5te3whsq8z476goo", name="ban_1ka1i...6goo", trusted=True),
    KnownEntry(id="ban_3batmanuenphd7osrez9c45b3uqw9d9u81ne8xa6m43e1py56y9p48ap69zg", name="ban_3batm...69zg"),
    KnownEntry(id="ban_1banbet1hxxe9aeu11oqss9sxwe814jo9ym8c98653j1chq4k4yaxjsacnhc", name="ban_1banb...cnhc"),
    KnownEntry(id="ban_1heart7e8u4tnyowup9hwchx8tkfaqjiyp67si74gdanziizegf7p37jd6gf", name="ban_1hear...d6gf", trusted=True),
    KnownEntry(id="ban_3grayknbwtrjdsbdgsjbx4fzds7eufjqghzu6on57aqxte7fhhh14gxbdz61", name="ban_3gray...dz61"),
    KnownEntry(id="ban_3pa1m3g79i1h7uijugndjeytpmqbsg6hc19zm8m7foqygwos1mmcqmab91hh", name="ban_3pa1m...91hh"),
    KnownEntry(id="ban_3tacocatezozswnu8xkh66qa1dbcdujktzmfpdj7ax66wtfrio6h5sxikkep", name="ban_3taco...kkep"),
    KnownEntry(id="ban_1moonanoj76om1e9gnji5mdfsopnr5ddyi6k3qtcbs8nogyjaa6p8j87sgid", name="ban_1moon...sgid"),
    KnownEntry(id="ban_1goobcumtuqe37htu4qwtpkxnjj4jjheyz6e6kke3mro7d8zq5d36yskphqt", name="ban_1goob...phqt"),
]


def map_crawler_representatives(crawler_reps: List[dict]) -> List[KnownEntry]:
    """Crawler entries -> known entries; online representatives are trusted."""
    mapped: List[KnownEntry] = []
    for rep in crawler_reps:
        account = normalize_account(rep.get("address") or "")
        if not is_valid_account(account):
            continue
        mapped.append(KnownEntry(id=account, name=short_name(account), trusted=bool(rep.get("online"))))
    return mapped


def _priority(entry: KnownEntry) -> int:
    if entry.trusted:
        return 2
    if entry.warn:
        return 0
    return 1


class KnownListManager:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        crawler: Optional[CrawlerSource] = None,
        store_key: str = DEFAULT_STORE_KEY,
        legacy_store_key: str = LEGACY_STORE_KEY,
        min_weight: int = DEFAULT_MIN_WEIGHT,
        defaults: Optional[List[KnownEntry]] = None,
    ):
        self.store = store
        self.crawler = crawler
        self.store_key = store_key
        self.legacy_store_key = legacy_store_key
        self.min_weight = min_weight

        self.default_representatives: List[KnownEntry] = list(
            defaults if defaults is not None else DEFAULT_REPRESENTATIVES
        )
        self.representatives: List[KnownEntry] = list(self.default_representatives)
        self.loaded = False
        self.changes: Broadcast[List[KnownEntry]] = Broadcast("known_representatives", list(self.representatives))

    # -------------------------
    # Loading
    # -------------------------

    def load(self) -> List[KnownEntry]:
        if self.loaded:
            return self.representatives

        stored = self.store.get(self.store_key) or self.store.get(self.legacy_store_key)
        if stored:
            entries = self._parse(stored)
            self.store.set(self.store_key, stored)
            self.store.remove(self.legacy_store_key)
        else:
            entries = list(self.default_representatives)

        self.representatives = entries
        self.loaded = True
        self._publish()

        if not stored:
            self.bootstrap_from_crawler()

        return self.representatives

    def bootstrap_from_crawler(self) -> List[KnownEntry]:
        """
        Replace the defaults with well-weighted online representatives.

        The active list only changes when nothing has been persisted, so a
        user's saved list is never overwritten.
        """
        if not self.crawler:
            return []
        try:
            crawler_reps = self.crawler.representatives(self.min_weight, True)
        except SourceTransportError:
            logger.warning("Crawler bootstrap failed; keeping default representatives", exc_info=True)
            return []
        if not crawler_reps:
            return []

        mapped = map_crawler_representatives(crawler_reps)
        if not mapped:
            return []

        self.default_representatives = mapped
        if not self.store.get(self.store_key):
            self.representatives = list(mapped)
            self._publish()
        logger.info("Seeded %s known representatives from crawler", len(mapped))
        return mapped

    def _parse(self, raw: str) -> List[KnownEntry]:
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("stored representatives must be a list")
            return [KnownEntry.model_validate(item) for item in data]
        except (ValueError, ValidationError) as e:
            raise KnownListError(f"Stored representative list is malformed: {e}") from e

    # -------------------------
    # Queries
    # -------------------------

    def get(self, account_id: str) -> Optional[KnownEntry]:
        return next((rep for rep in self.representatives if rep.id == account_id), None)

    def name_exists(self, name: str) -> bool:
        name = name.lower()
        return any(rep.name.lower() == name for rep in self.representatives)

    def sorted_by_priority(self) -> List[KnownEntry]:
        # display order only: trusted first, warned last
        return sorted(self.representatives, key=_priority, reverse=True)

    # -------------------------
    # Mutations
    # -------------------------

    def save(self, entry: KnownEntry) -> KnownEntry:
        name = entry.name.lower()
        account_id = entry.id.lower()
        index = self._find_index(lambda r: r.name.lower() == name or r.id.lower() == account_id)
        if index is not None:
            self.representatives[index] = entry
        else:
            self.representatives.append(entry)

        self._persist()
        self._publish()
        return entry

    def delete(self, account_id: str) -> bool:
        account_id = account_id.lower()
        index = self._find_index(lambda r: r.id.lower() == account_id)
        if index is None:
            return False

        del self.representatives[index]
        self._persist()
        self._publish()
        return True

    def reset(self) -> None:
        self.store.remove(self.store_key)
        self.representatives = list(self.default_representatives)
        self.loaded = False
        self._publish()

    def patch_prefix_data(self) -> bool:
        """Rewrite stored ids that still carry the xrb_/nano_ prefix to ban_.

        Returns True when any stored id was rewritten.
        """
        stored = self.store.get(self.store_key)
        if not stored:
            return False

        current = self._parse(stored)
        entries = [
            entry.model_copy(update={"id": _LEGACY_ID_PREFIX_RE.sub("ban_", entry.id)})
            for entry in current
        ]
        if entries == current:
            return False
        self.store.set(self.store_key, self._serialize(entries))
        if self.loaded:
            self.representatives = entries
            self._publish()
        return True

    # -------------------------
    # Internals
    # -------------------------

    def _find_index(self, predicate: Callable[[KnownEntry], bool]) -> Optional[int]:
        return next((i for i, rep in enumerate(self.representatives) if predicate(rep)), None)

    @staticmethod
    def _serialize(entries: List[KnownEntry]) -> str:
        return json.dumps([entry.to_stored() for entry in entries])

    def _persist(self) -> None:
        self.store.set(self.store_key, self._serialize(self.representatives))

    def _publish(self) -> None:
        self.changes.publish(list(self.representatives))
