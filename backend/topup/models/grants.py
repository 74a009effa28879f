"""
Top-Up Reconciler - Grant & Balance Schemas

Grants and fee allowances mirror the chain REST payloads
(authz / feegrant modules). They are read-only as observed: the
reconciler never mutates them.

Balances is derived per grant on every pass and never persisted.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from topup.core.exceptions import MalformedGrant
from topup.core.types import Amount


# =============================================================================
# CHAIN PAYLOADS
# =============================================================================

class Coin(BaseModel):
    """Denom/amount pair; the chain's decimal string is parsed on validation."""
    denom: str
    amount: Amount


class SpendLimit(Coin):
    """Principal spend limit of a deployment grant."""
    pass


class DeploymentAuthorization(BaseModel):
    """Deposit-deployment authorization carried by an authz grant."""
    model_config = ConfigDict(populate_by_name=True)
    
    type: str = Field("", alias="@type")
    spend_limit: SpendLimit


class DeploymentGrant(BaseModel):
    """Delegation of deployment deposit authority from granter to grantee."""
    model_config = ConfigDict(frozen=True)
    
    granter: str
    grantee: str
    authorization: DeploymentAuthorization
    expiration: Optional[datetime] = None


class UnreadableGrant(BaseModel):
    """
    Deployment grant the registry returned in a shape that does not validate.
    
    Kept in its page so the failure is raised, reported and counted at the
    per-grant boundary like any other grant failure.
    """
    granter: str = ""
    grantee: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)
    
    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "UnreadableGrant":
        return cls(
            granter=str(raw.get("granter") or ""),
            grantee=str(raw.get("grantee") or ""),
            raw=raw,
        )
    
    def to_grant(self) -> DeploymentGrant:
        """
        Validate the raw payload again.
        
        Raises:
            MalformedAmount: an amount is not a number
            MalformedGrant: any other schema mismatch
        """
        try:
            return DeploymentGrant.model_validate(self.raw)
        except ValidationError as e:
            raise MalformedGrant(self.granter, self.grantee, str(e)) from e


# Entry of a grants page
GrantEntry = Union[DeploymentGrant, UnreadableGrant]


class FeeAllowance(BaseModel):
    """Basic fee allowance body."""
    model_config = ConfigDict(populate_by_name=True)
    
    type: str = Field("", alias="@type")
    spend_limit: list[Coin] = Field(default_factory=list)
    expiration: Optional[datetime] = None


class FeeAllowanceGrant(BaseModel):
    """Fee-spend authorization between a granter and a grantee."""
    granter: str
    grantee: str
    allowance: FeeAllowance


# =============================================================================
# RECONCILIATION TYPES
# =============================================================================

class GrantSide(str, Enum):
    """Which side of a grant the filter address is on."""
    GRANTER = "granter"
    GRANTEE = "grantee"


class OwnerType(str, Enum):
    """
    Which side of a grant owns the deployments being topped up.
    
    CUSTODIAL: owner is the granter
    MANAGED: owner is the grantee
    """
    CUSTODIAL = "CUSTODIAL"
    MANAGED = "MANAGED"


class GrantFilter(BaseModel):
    """Registry filter for paginated grant queries."""
    side: GrantSide
    address: str
    limit: int = Field(10, ge=1)


class Balances(BaseModel):
    """Per-grant balance snapshot used to validate a top-up."""
    denom: str
    fees_limit: Decimal = Field(..., ge=0)
    deployment_limit: Decimal
    balance: Decimal
    is_managed: bool


class DrainingDeployment(BaseModel):
    """Deployment whose funded runway is approaching exhaustion."""
    dseq: str
    owner: str
    denom: Optional[str] = None
    block_rate: Optional[Decimal] = None
    predicted_closed_height: Optional[int] = None


class TopUpAction(str, Enum):
    CUSTODIAL = "CUSTODIAL"
    MANAGED = "MANAGED"


class TopUpDecision(BaseModel):
    """Validated instruction to top up a deployment."""
    amount: Decimal = Field(..., ge=0)
    denom: str
    action: TopUpAction


# =============================================================================
# RUN REPORT
# =============================================================================

class RoleReport(BaseModel):
    """Outcome of one wallet role's grant traversal."""
    role: str
    owner_type: OwnerType
    address: Optional[str] = None
    pages: int = 0
    grants: int = 0
    failed: int = 0


class ReconciliationReport(BaseModel):
    """Outcome of a full reconciliation pass."""
    roles: list[RoleReport] = Field(default_factory=list)
    
    @property
    def grants(self) -> int:
        return sum(r.grants for r in self.roles)
    
    @property
    def failed(self) -> int:
        return sum(r.failed for r in self.roles)
