from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from core.reps.accounts import DECIMAL_CONTEXT, to_decimal
from core.reps.models import Account, DelegateWeight


def unique_representatives(accounts: Iterable[Optional[Account]]) -> List[DelegateWeight]:
    """
    Fold wallet accounts into one record per representative.

    Accounts without a representative (not opened yet) are skipped.
    Output order is the order in which each representative is first seen.
    """
    by_id: Dict[str, DelegateWeight] = {}
    for account in accounts:
        if not account or not account.representative:
            continue

        balance = to_decimal(account.balance)
        existing = by_id.get(account.representative)
        if existing:
            existing.weight = DECIMAL_CONTEXT.add(existing.weight, balance)
            existing.accounts.append(account)
        else:
            by_id[account.representative] = DelegateWeight(
                id=account.representative,
                weight=balance,
                accounts=[account],
            )

    # dicts keep insertion order
    return list(by_id.values())
