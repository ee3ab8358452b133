"""
rep_sources.py: HTTP clients for the external representative data sources

- Ledger node RPC: account_info, representatives_online, confirmation_quorum
- Creeper (crawler): reachable representatives and their online flag
- Ninja (reputation): uptime history, score, alias, donation address

The ledger client raises SourceTransportError; the crawler and reputation
clients map failures to their "no data" values since callers recover from them.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from core.reps.errors import SourceTransportError
from core.reps.models import LedgerAccountInfo
from uptime_signals import NOT_FOUND, SOURCE_ERROR, UptimeResult, build_uptime_record

logger = logging.getLogger(__name__)


# -----------------------------
# Ledger RPC
# -----------------------------

class LedgerRpcClient:
    def __init__(self, url: str, timeout: int):
        if not url:
            raise ValueError("RPC_URL is not set")
        self.url = url
        self.timeout = timeout

    def _call(self, action: str, **params: Any) -> Dict[str, Any]:
        payload = {"action": action, **params}
        try:
            r = requests.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise SourceTransportError("rpc", f"{action} request failed: {e}") from e

        if r.status_code < 200 or r.status_code >= 300:
            raise SourceTransportError("rpc", f"{action} returned HTTP {r.status_code}")

        try:
            data = r.json()
        except ValueError as e:
            raise SourceTransportError("rpc", f"{action} returned invalid JSON") from e

        if not isinstance(data, dict):
            raise SourceTransportError("rpc", f"{action} returned a non-object body")
        if data.get("error"):
            raise SourceTransportError("rpc", f"{action} error: {data['error']}")
        return data

    def account_info(self, account: str) -> LedgerAccountInfo:
        data = self._call(
            "account_info",
            account=account,
            representative="true",
            weight="true",
            pending="true",
        )
        try:
            return LedgerAccountInfo.model_validate(data)
        except ValidationError as e:
            raise SourceTransportError("rpc", f"account_info for {account} is malformed") from e

    def representatives_online(self) -> Optional[Dict[str, Any]]:
        return self._call("representatives_online")

    def confirmation_quorum(self) -> Optional[Dict[str, Any]]:
        return self._call("confirmation_quorum")


# -----------------------------
# Creeper (crawler)
# -----------------------------

class CreeperClient:
    def __init__(self, base_url: str, timeout: int):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout

    def representatives(self, min_weight: int, online_only: bool) -> Optional[List[Dict[str, Any]]]:
        """Representatives above `min_weight` (whole units), or None when unavailable."""
        if not self.base_url:
            return None
        params = {"minWeight": min_weight, "onlineOnly": "true" if online_only else "false"}
        try:
            r = requests.get(f"{self.base_url}/representatives", params=params, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError):
            logger.warning("Creeper representatives unavailable", exc_info=True)
            return None

        if isinstance(data, dict):
            data = data.get("representatives")
        if not isinstance(data, list):
            logger.warning("Creeper representatives: unexpected payload type %s", type(data).__name__)
            return None
        return [rep for rep in data if isinstance(rep, dict)]


# -----------------------------
# Ninja (reputation / uptime)
# -----------------------------

class NinjaClient:
    def __init__(self, base_url: str, timeout: int):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout

    def account_reputation(self, account: str) -> UptimeResult:
        if not self.base_url:
            return SOURCE_ERROR
        try:
            r = requests.get(f"{self.base_url}/accounts/{account}", timeout=self.timeout)
        except requests.RequestException:
            logger.warning("Ninja lookup failed for %s", account, exc_info=True)
            return SOURCE_ERROR

        if r.status_code == 404:
            return NOT_FOUND
        if r.status_code < 200 or r.status_code >= 300:
            logger.warning("Ninja lookup for %s returned HTTP %s", account, r.status_code)
            return SOURCE_ERROR

        try:
            return build_uptime_record(r.json())
        except (ValueError, TypeError):
            logger.warning("Ninja payload for %s is malformed", account, exc_info=True)
            return SOURCE_ERROR
