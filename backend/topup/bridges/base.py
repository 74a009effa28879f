"""
Top-Up Reconciler - REST Bridge Base

Shared transport for chain REST clients. Transport errors, non-2xx
responses and undecodable bodies all surface as RegistryUnavailable.
Retries are left to the transport configuration.
"""

import logging
from typing import Any, Optional

import httpx

from topup.core.config import get_settings
from topup.core.exceptions import RegistryUnavailable

logger = logging.getLogger(__name__)


class ChainRestBridge:
    """Thin async JSON client over a chain REST endpoint."""
    
    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.API_NODE_URL).rstrip("/")
        self.client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS,
        )
    
    async def _get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"[CHAIN] {url} returned {e.response.status_code}")
            raise RegistryUnavailable(
                f"{url} returned {e.response.status_code}",
                url=url,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"[CHAIN] {url} unreachable: {e}")
            raise RegistryUnavailable(f"{url} unreachable: {e}", url=url) from e
        except ValueError as e:
            raise RegistryUnavailable(f"{url} returned an invalid body", url=url) from e
    
    async def close(self) -> None:
        await self.client.aclose()
