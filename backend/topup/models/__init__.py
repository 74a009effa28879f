from topup.models.grants import (
    Balances,
    Coin,
    DeploymentAuthorization,
    DeploymentGrant,
    DrainingDeployment,
    FeeAllowance,
    FeeAllowanceGrant,
    GrantEntry,
    GrantFilter,
    GrantSide,
    OwnerType,
    ReconciliationReport,
    RoleReport,
    SpendLimit,
    TopUpAction,
    TopUpDecision,
    UnreadableGrant,
)

__all__ = [
    "Balances",
    "Coin",
    "DeploymentAuthorization",
    "DeploymentGrant",
    "DrainingDeployment",
    "FeeAllowance",
    "FeeAllowanceGrant",
    "GrantEntry",
    "GrantFilter",
    "GrantSide",
    "OwnerType",
    "ReconciliationReport",
    "RoleReport",
    "SpendLimit",
    "TopUpAction",
    "TopUpDecision",
    "UnreadableGrant",
]
