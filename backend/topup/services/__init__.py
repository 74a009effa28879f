from topup.services.deployments import DeploymentSource, DrainingDeploymentFallback
from topup.services.errors import ErrorTracker, FailureReporter, LoggingErrorTracker
from topup.services.policy import (
    FallbackTopUpExecutor,
    FallbackTopUpPolicy,
    TopUpExecutor,
    TopUpPolicy,
)
from topup.services.reconciler import GrantReconciler
from topup.services.wallets import MasterWallet, WalletRole, build_master_wallets

__all__ = [
    "DeploymentSource",
    "DrainingDeploymentFallback",
    "ErrorTracker",
    "FailureReporter",
    "LoggingErrorTracker",
    "FallbackTopUpExecutor",
    "FallbackTopUpPolicy",
    "TopUpExecutor",
    "TopUpPolicy",
    "GrantReconciler",
    "MasterWallet",
    "WalletRole",
    "build_master_wallets",
]
