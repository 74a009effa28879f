"""
Top-Up Reconciler - Balance Bridge

Spendable balance of a single denom for an address (bank module).
"""

from pydantic import ValidationError

from topup.bridges.base import ChainRestBridge
from topup.core.exceptions import RegistryUnavailable
from topup.models.grants import Coin


class BalanceClient(ChainRestBridge):
    """Client for bank balances."""
    
    async def get_balance(self, address: str, denom: str) -> Coin:
        """Fetch the balance of `address` in `denom`."""
        data = await self._get_json(
            f"/cosmos/bank/v1beta1/balances/{address}/by_denom",
            params={"denom": denom},
        )
        try:
            return Coin.model_validate(data["balance"])
        except (KeyError, TypeError, ValidationError) as e:
            raise RegistryUnavailable(f"Unreadable balance for {address} in {denom}") from e
