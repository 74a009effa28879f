"""
Top-Up Reconciler - Master Wallets

One resolver per wallet role. The first address is resolved once and
reused across reconciliation passes.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from topup.core.config import Settings, get_settings
from topup.core.exceptions import WalletNotConfigured

AddressLoader = Callable[[], Awaitable[str]]


class WalletRole(str, Enum):
    """Logical master wallet roles."""
    MANAGED = "MANAGED"
    UAKT_TOP_UP = "UAKT_TOP_UP"
    USDC_TOP_UP = "USDC_TOP_UP"


class MasterWallet:
    """
    Resolves the first on-chain address of a wallet role.
    
    `source` is either a fixed address or an async loader (e.g. a
    derivation from a key store); the loader runs at most once per
    successful resolution.
    """
    
    def __init__(self, role: WalletRole, source: Union[str, AddressLoader, None]):
        self.role = role
        self._source = source
        self._address: Optional[str] = None
        self._lock: Optional[asyncio.Lock] = None
    
    async def get_first_address(self) -> str:
        if self._address is not None:
            return self._address
        
        if self._source is None or self._source == "":
            raise WalletNotConfigured(self.role.value)
        
        if isinstance(self._source, str):
            self._address = self._source
            return self._address
        
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._address is None:
                address = await self._source()
                if not address:
                    raise WalletNotConfigured(self.role.value)
                self._address = address
        return self._address
    
    def __repr__(self) -> str:
        return f"MasterWallet(role={self.role.value}, address={self._address})"


def build_master_wallets(settings: Optional[Settings] = None) -> dict[WalletRole, MasterWallet]:
    """Build one resolver per role from configured addresses."""
    settings = settings or get_settings()
    return {
        WalletRole.MANAGED: MasterWallet(WalletRole.MANAGED, settings.MANAGED_WALLET_ADDRESS),
        WalletRole.UAKT_TOP_UP: MasterWallet(WalletRole.UAKT_TOP_UP, settings.UAKT_TOP_UP_WALLET_ADDRESS),
        WalletRole.USDC_TOP_UP: MasterWallet(WalletRole.USDC_TOP_UP, settings.USDC_TOP_UP_WALLET_ADDRESS),
    }
