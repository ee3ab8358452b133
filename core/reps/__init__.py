"""
Representative health monitoring core.

This package defines:
- Wallet-side weight aggregation per representative
- Concurrent collection of ledger, online, quorum and uptime data
- The known-representative list (persisted, user editable)
- Observer broadcasts and the session object tying them together

The status rules themselves live in `status_rules.py`.
"""
