"""
Unit tests for core/reps/aggregation.py

Tests cover:
- One record per representative, first-seen order
- Accounts without a representative are skipped
- Exact decimal sums over raw balances
"""
from decimal import Decimal, localcontext

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import BANANO, HOOT, KALIUM
from core.reps.aggregation import unique_representatives
from core.reps.models import Account


def _account(idx: int, balance, representative):
    return Account(id=f"wallet_{idx}", balance=Decimal(balance), representative=representative)


class TestUniqueRepresentatives:
    """Test folding wallet accounts into delegate records"""

    def test_groups_by_representative(self):
        accounts = [
            _account(1, 10, HOOT),
            _account(2, 5, KALIUM),
            _account(3, 7, HOOT),
        ]
        reps = unique_representatives(accounts)

        assert [r.id for r in reps] == [HOOT, KALIUM]
        assert reps[0].weight == Decimal(17)
        assert [a.id for a in reps[0].accounts] == ["wallet_1", "wallet_3"]
        assert reps[1].weight == Decimal(5)

    def test_first_seen_order(self):
        accounts = [
            _account(1, 1, KALIUM),
            _account(2, 1, BANANO),
            _account(3, 1, HOOT),
            _account(4, 1, BANANO),
        ]
        assert [r.id for r in unique_representatives(accounts)] == [KALIUM, BANANO, HOOT]

    def test_skips_accounts_without_representative(self):
        accounts = [
            _account(1, 100, None),
            _account(2, 3, HOOT),
            None,
            _account(3, 100, ""),
        ]
        reps = unique_representatives(accounts)
        assert len(reps) == 1
        assert reps[0].weight == Decimal(3)

    def test_empty(self):
        assert unique_representatives([]) == []

    def test_sum_is_exact_for_raw_balances(self):
        """Raw balances exceed the default 28 digit decimal precision"""
        balances = [
            Decimal("123456789012345678901234567890123456789"),
            Decimal("1"),
            Decimal("99999999999999999999999999999999999999"),
        ]
        accounts = [_account(i, b, HOOT) for i, b in enumerate(balances)]
        reps = unique_representatives(accounts)

        assert reps[0].weight == Decimal("223456789012345678901234567890123456789")

    def test_total_weight_matches_delegated_balances(self):
        accounts = [
            _account(1, "1000000000000000000000000000000.5", HOOT),
            _account(2, "3", None),
            _account(3, "0.25", KALIUM),
            _account(4, "2000000000000000000000000000000", HOOT),
        ]
        reps = unique_representatives(accounts)

        with localcontext() as ctx:
            ctx.prec = 100
            total = sum((r.weight for r in reps), Decimal(0))
        assert total == Decimal("3000000000000000000000000000000.75")
