"""
Top-Up Reconciler - Allowance Bridge

Grant registry access over the authz and feegrant REST modules.

Pagination follows the cosmos protocol: `pagination.limit` bounds the
page, `pagination.next_key` is echoed back as `pagination.key` until the
registry returns no key.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

import httpx
from pydantic import ValidationError

from topup.bridges.base import ChainRestBridge
from topup.core.config import get_settings
from topup.core.deadline import run_with_deadline
from topup.core.exceptions import MalformedAmount, RegistryUnavailable
from topup.models.grants import (
    DeploymentGrant,
    FeeAllowanceGrant,
    GrantEntry,
    GrantFilter,
    UnreadableGrant,
)

logger = logging.getLogger(__name__)

OnPage = Callable[[list[GrantEntry]], Awaitable[None]]


class AllowanceClient(ChainRestBridge):
    """Client for deployment grants and fee allowances."""
    
    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        authorization_type: Optional[str] = None,
    ):
        super().__init__(base_url=base_url, client=client, timeout=timeout)
        self.authorization_type = authorization_type or get_settings().DEPLOYMENT_AUTHORIZATION_TYPE
    
    async def get_deployment_grants_page(
        self,
        grant_filter: GrantFilter,
        key: Optional[str] = None,
    ) -> tuple[list[GrantEntry], Optional[str]]:
        """
        Fetch one page of deployment grants.
        
        Deployment grants that do not validate are returned as
        UnreadableGrant entries, not dropped.
        
        Returns:
            (grants, next_key) where next_key is None on the last page
        """
        params = {"pagination.limit": grant_filter.limit}
        if key:
            params["pagination.key"] = key
        
        data = await self._get_json(
            f"/cosmos/authz/v1beta1/grants/{grant_filter.side.value}/{grant_filter.address}",
            params=params,
        )
        
        grants = []
        for raw in data.get("grants") or []:
            if not self._is_deployment_grant(raw):
                continue
            try:
                grants.append(DeploymentGrant.model_validate(raw))
            except (ValidationError, MalformedAmount) as e:
                logger.warning(
                    f"[ALLOWANCE] Unreadable grant {raw.get('granter')} -> {raw.get('grantee')}: {e}"
                )
                grants.append(UnreadableGrant.from_raw(raw))
        
        next_key = (data.get("pagination") or {}).get("next_key") or None
        return grants, next_key
    
    def _is_deployment_grant(self, raw: Any) -> bool:
        if not isinstance(raw, dict):
            return False
        authorization = raw.get("authorization")
        return isinstance(authorization, dict) and authorization.get("@type") == self.authorization_type
    
    async def paginate_deployment_grants(
        self,
        grant_filter: GrantFilter,
        on_page: OnPage,
        page_timeout: Optional[float] = None,
    ) -> None:
        """
        Walk every page of deployment grants matching the filter.
        
        The next page is only requested once `on_page` has returned for the
        current one. Fetch failures propagate to the caller.
        
        Args:
            grant_filter: side, address and page size
            on_page: awaited once per page, in registry order
            page_timeout: deadline for a single page fetch
        """
        key = None
        while True:
            fetch = self.get_deployment_grants_page(grant_filter, key)
            if page_timeout is not None:
                grants, key = await run_with_deadline(
                    f"grants page for {grant_filter.side.value} {grant_filter.address}",
                    fetch,
                    page_timeout,
                )
            else:
                grants, key = await fetch
            
            await on_page(grants)
            
            if not key:
                break
    
    async def get_fee_allowance_for_granter_and_grantee(
        self,
        granter: str,
        grantee: str,
    ) -> FeeAllowanceGrant:
        """Fetch the fee allowance granted by `granter` to `grantee`."""
        data = await self._get_json(f"/cosmos/feegrant/v1beta1/allowance/{granter}/{grantee}")
        try:
            return FeeAllowanceGrant.model_validate(data["allowance"])
        except (KeyError, TypeError, ValidationError) as e:
            raise RegistryUnavailable(
                f"Unreadable fee allowance {granter} -> {grantee}",
            ) from e
