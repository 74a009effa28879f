"""
Top-Up Reconciler - Grant Reconciliation Engine

Walks the deployment grants of every master wallet, collects balances per
grant and hands draining deployments to the top-up policy.

ORDER:
1. Custodial top-up wallets, concurrently (grants received by the wallet)
2. Managed master wallet, after every custodial wallet is done
   (grants issued by the wallet)

GUARDRAILS:
- Next page is fetched only after the current page is fully processed
- A failing grant is reported and never stops its siblings
- A failing page fetch ends the run
"""

import asyncio
import functools
import logging
from decimal import Decimal
from typing import Optional, Sequence

from topup.bridges.allowance import AllowanceClient
from topup.bridges.balance import BalanceClient
from topup.core.config import get_settings
from topup.core.deadline import run_with_deadline
from topup.core.logging import log_event
from topup.models.grants import (
    Balances,
    DeploymentGrant,
    DrainingDeployment,
    GrantEntry,
    GrantFilter,
    GrantSide,
    OwnerType,
    ReconciliationReport,
    RoleReport,
    TopUpAction,
    UnreadableGrant,
)
from topup.services.deployments import DeploymentSource
from topup.services.errors import FailureReporter
from topup.services.policy import TopUpExecutor, TopUpPolicy
from topup.services.wallets import MasterWallet

logger = logging.getLogger(__name__)


class GrantReconciler:
    """
    Reconciles deployment grants against wallet balances.

    All collaborators are injected; wallet resolvers are expected to be
    built once per process and shared across passes.
    """

    def __init__(
        self,
        allowance_client: AllowanceClient,
        balance_client: BalanceClient,
        managed_wallet: MasterWallet,
        custodial_wallets: Sequence[MasterWallet],
        deployment_source: DeploymentSource,
        policy: TopUpPolicy,
        executor: TopUpExecutor,
        failure_reporter: Optional[FailureReporter] = None,
        concurrency: Optional[int] = None,
        unlimited_fees_managed_balance: Optional[Decimal] = None,
        grant_timeout: Optional[float] = None,
        page_timeout: Optional[float] = None,
    ) -> None:
        settings = get_settings()

        self.allowance_client = allowance_client
        self.balance_client = balance_client
        self.managed_wallet = managed_wallet
        self.custodial_wallets = list(custodial_wallets)
        self.deployment_source = deployment_source
        self.policy = policy
        self.executor = executor
        self.failure_reporter = failure_reporter or FailureReporter()

        self.concurrency = concurrency or settings.TOP_UP_CONCURRENCY
        self.unlimited_fees_managed_balance = (
            unlimited_fees_managed_balance
            if unlimited_fees_managed_balance is not None
            else settings.UNLIMITED_FEES_MANAGED_BALANCE
        )
        self.grant_timeout = grant_timeout if grant_timeout is not None else settings.GRANT_TIMEOUT_SECONDS
        self.page_timeout = page_timeout if page_timeout is not None else settings.PAGE_TIMEOUT_SECONDS

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    async def reconcile_all(self) -> ReconciliationReport:
        """
        Run one reconciliation pass over every wallet role.

        Raises:
            Whatever a page fetch or wallet resolution raised. Custodial
            wallets still run to completion before the error is re-raised;
            the managed pass is skipped.
        """
        report = ReconciliationReport()
        log_event(logger, logging.INFO, "RECONCILIATION_STARTED", custodial_wallets=len(self.custodial_wallets))

        custodial_reports = [
            RoleReport(role=wallet.role.value, owner_type=OwnerType.CUSTODIAL)
            for wallet in self.custodial_wallets
        ]
        report.roles.extend(custodial_reports)

        try:
            results = await asyncio.gather(
                *(
                    self._reconcile_wallet(OwnerType.CUSTODIAL, wallet, role_report)
                    for wallet, role_report in zip(self.custodial_wallets, custodial_reports)
                ),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, BaseException):
                    raise result

            managed_report = RoleReport(role=self.managed_wallet.role.value, owner_type=OwnerType.MANAGED)
            report.roles.append(managed_report)
            await self._reconcile_wallet(OwnerType.MANAGED, self.managed_wallet, managed_report)
        except Exception as e:
            # Counts cover the pages processed before the failure
            log_event(
                logger,
                logging.ERROR,
                "RECONCILIATION_ABORTED",
                grants=report.grants,
                failed=report.failed,
                error=f"{type(e).__name__}: {e}",
            )
            raise

        log_event(
            logger,
            logging.INFO,
            "RECONCILIATION_FINISHED",
            grants=report.grants,
            failed=report.failed,
        )
        return report

    async def _reconcile_wallet(
        self,
        owner_type: OwnerType,
        wallet: MasterWallet,
        role_report: RoleReport,
    ) -> None:
        address = await wallet.get_first_address()
        role_report.address = address

        # Custodial wallets receive grants, the managed wallet issues them
        side = GrantSide.GRANTEE if owner_type == OwnerType.CUSTODIAL else GrantSide.GRANTER

        async def on_page(grants: list[GrantEntry]) -> None:
            await self._process_page(owner_type, grants, role_report)

        await self.allowance_client.paginate_deployment_grants(
            GrantFilter(side=side, address=address, limit=self.concurrency),
            on_page,
            page_timeout=self.page_timeout,
        )

    async def _process_page(
        self,
        owner_type: OwnerType,
        grants: list[GrantEntry],
        role_report: RoleReport,
    ) -> None:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(grant: GrantEntry) -> bool:
            async with semaphore:
                return await self.failure_reporter.exec_with_error_handler(
                    functools.partial(self._process_grant_with_deadline, owner_type, grant),
                    owner_type=owner_type.value,
                    granter=grant.granter,
                    grantee=grant.grantee,
                )

        results = await asyncio.gather(*(run(grant) for grant in grants))

        role_report.pages += 1
        role_report.grants += len(grants)
        role_report.failed += sum(1 for ok in results if not ok)

    async def _process_grant_with_deadline(self, owner_type: OwnerType, grant: GrantEntry) -> None:
        if isinstance(grant, UnreadableGrant):
            grant = grant.to_grant()

        await run_with_deadline(
            f"grant {grant.granter} -> {grant.grantee}",
            self.process_grant(owner_type, grant),
            self.grant_timeout,
        )

    # =========================================================================
    # PER GRANT
    # =========================================================================

    async def process_grant(self, owner_type: OwnerType, grant: DeploymentGrant) -> None:
        """Collect balances for a grant and top up the owner's draining deployments."""
        owner = self._owner_of(owner_type, grant)
        balances = await self.collect_wallet_balances(owner_type, grant)

        deployments = await self.deployment_source.retrieve_draining_deployments(owner)
        if not deployments:
            return

        # Deployments are independent: no ordering, each failure reported on its own
        await asyncio.gather(
            *(
                self.failure_reporter.exec_with_error_handler(
                    functools.partial(self.top_up_deployment, deployment, balances),
                    owner_type=owner_type.value,
                    owner=owner,
                    dseq=deployment.dseq,
                )
                for deployment in deployments
            )
        )

    async def top_up_deployment(self, deployment: DrainingDeployment, balances: Balances) -> None:
        amount = await self.policy.calculate_top_up_amount(deployment)
        decision = self.policy.validate_top_up_amount(amount, balances)
        if decision is None:
            return

        if decision.action == TopUpAction.MANAGED:
            await self.executor.top_up_managed_deployment(deployment, decision)
        else:
            await self.executor.top_up_custodial_deployment(deployment, decision)

    async def collect_wallet_balances(self, owner_type: OwnerType, grant: DeploymentGrant) -> Balances:
        """
        Build the balance snapshot for a grant.

        Sides are [granter, grantee], reversed for managed owners. The first
        side is the paying address: its balance is fetched and, for custodial
        owners, it is the granter of the fee allowance looked up.
        """
        spend_limit = grant.authorization.spend_limit
        denom = spend_limit.denom
        deployment_limit = spend_limit.amount

        sides = [grant.granter, grant.grantee]
        is_managed = owner_type == OwnerType.MANAGED
        if is_managed:
            sides.reverse()

        if is_managed:
            fees_limit = self.unlimited_fees_managed_balance
        else:
            fees_limit = await self.retrieve_fees_limit(sides[0], sides[1], denom)

        coin = await self.balance_client.get_balance(sides[0], denom)
        balance = coin.amount

        balances = Balances(
            denom=denom,
            fees_limit=fees_limit,
            deployment_limit=deployment_limit,
            balance=balance,
            is_managed=is_managed,
        )

        log_event(
            logger,
            logging.DEBUG,
            "BALANCES_COLLECTED",
            owner=self._owner_of(owner_type, grant),
            granter=grant.granter,
            grantee=grant.grantee,
            balances=balances.model_dump(mode="json"),
        )
        return balances

    async def retrieve_fees_limit(self, granter: str, grantee: str, denom: str) -> Decimal:
        """Fee spend limit in `denom` granted by `granter` to `grantee`, 0 if none."""
        fee_allowance = await self.allowance_client.get_fee_allowance_for_granter_and_grantee(granter, grantee)
        for limit in fee_allowance.allowance.spend_limit:
            if limit.denom == denom:
                return limit.amount
        return Decimal("0")

    @staticmethod
    def _owner_of(owner_type: OwnerType, grant: DeploymentGrant) -> str:
        return grant.granter if owner_type == OwnerType.CUSTODIAL else grant.grantee
