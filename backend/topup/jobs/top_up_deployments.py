"""
Top up draining deployments (scheduled).
- resolve master wallet addresses
- reconcile custodial top-up wallets, then the managed wallet
- per-grant failures are reported, page fetch failures end the run
"""

import asyncio
import logging
from typing import Optional

from topup.bridges.allowance import AllowanceClient
from topup.bridges.balance import BalanceClient
from topup.core.config import Settings, get_settings
from topup.core.logging import configure_logging
from topup.models.grants import ReconciliationReport
from topup.services.deployments import DrainingDeploymentFallback
from topup.services.errors import FailureReporter, LoggingErrorTracker
from topup.services.policy import FallbackTopUpExecutor, FallbackTopUpPolicy
from topup.services.reconciler import GrantReconciler
from topup.services.wallets import WalletRole, build_master_wallets

logger = logging.getLogger(__name__)


def build_reconciler(settings: Optional[Settings] = None) -> GrantReconciler:
    """Wire a reconciler from settings with the fallback policy hooks."""
    settings = settings or get_settings()
    wallets = build_master_wallets(settings)
    
    return GrantReconciler(
        allowance_client=AllowanceClient(
            base_url=settings.API_NODE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            authorization_type=settings.DEPLOYMENT_AUTHORIZATION_TYPE,
        ),
        balance_client=BalanceClient(
            base_url=settings.API_NODE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        ),
        managed_wallet=wallets[WalletRole.MANAGED],
        custodial_wallets=[wallets[WalletRole.UAKT_TOP_UP], wallets[WalletRole.USDC_TOP_UP]],
        deployment_source=DrainingDeploymentFallback(),
        policy=FallbackTopUpPolicy(),
        executor=FallbackTopUpExecutor(),
        failure_reporter=FailureReporter(LoggingErrorTracker()),
        concurrency=settings.TOP_UP_CONCURRENCY,
        unlimited_fees_managed_balance=settings.UNLIMITED_FEES_MANAGED_BALANCE,
        grant_timeout=settings.GRANT_TIMEOUT_SECONDS,
        page_timeout=settings.PAGE_TIMEOUT_SECONDS,
    )


async def run(reconciler: Optional[GrantReconciler] = None) -> ReconciliationReport:
    reconciler = reconciler or build_reconciler()
    try:
        return await reconciler.reconcile_all()
    finally:
        await reconciler.allowance_client.close()
        await reconciler.balance_client.close()


def main() -> None:
    configure_logging()
    report = asyncio.run(run())
    logger.info(f"[TOP-UP] Processed {report.grants} grants, {report.failed} failed")


if __name__ == "__main__":
    main()
