"""
Top-Up Reconciler - Chain Bridges

Read-only REST clients for:
- authz grants (deployment deposit grants, paginated)
- feegrant allowances
- bank balances
"""

from topup.bridges.allowance import AllowanceClient
from topup.bridges.balance import BalanceClient

__all__ = [
    "AllowanceClient",
    "BalanceClient",
]
