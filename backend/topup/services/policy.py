"""
Top-Up Reconciler - Top-Up Policy & Execution Hooks

RULE: Calling code uses these interfaces.
      Amount formula and transaction broadcast plug in here later,
      the reconciler does not change.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from topup.core.logging import log_event
from topup.models.grants import Balances, DrainingDeployment, TopUpDecision

logger = logging.getLogger(__name__)


# =============================================================================
# POLICY
# =============================================================================

class TopUpPolicy(ABC):
    """Decides how much to top up and whether it can be paid."""
    
    @abstractmethod
    async def calculate_top_up_amount(self, deployment: DrainingDeployment) -> Decimal:
        """
        Compute the top-up amount for a draining deployment.
        
        Returns:
            Non-negative amount in the deployment's denom
        """
        pass
    
    @abstractmethod
    def validate_top_up_amount(
        self,
        amount: Decimal,
        balances: Balances,
    ) -> Optional[TopUpDecision]:
        """
        Check `amount` against the collected balances.
        
        Returns:
            TopUpDecision when the top-up should be executed, None otherwise
        """
        pass


class FallbackTopUpPolicy(TopUpPolicy):
    """Placeholder policy: amount 0, never executes."""
    
    async def calculate_top_up_amount(self, deployment: DrainingDeployment) -> Decimal:
        log_event(
            logger,
            logging.DEBUG,
            "CALCULATING_TOP_UP_AMOUNT",
            deployment=deployment.dseq,
            owner=deployment.owner,
            warning="Not implemented yet",
        )
        return Decimal("0")
    
    def validate_top_up_amount(
        self,
        amount: Decimal,
        balances: Balances,
    ) -> Optional[TopUpDecision]:
        log_event(
            logger,
            logging.DEBUG,
            "VALIDATING_TOP_UP_AMOUNT",
            amount=str(amount),
            balances=balances.model_dump(mode="json"),
            warning="Not implemented yet",
        )
        return None


# =============================================================================
# EXECUTION
# =============================================================================

class TopUpExecutor(ABC):
    """Builds and broadcasts top-up transactions."""
    
    @abstractmethod
    async def top_up_custodial_deployment(
        self,
        deployment: DrainingDeployment,
        decision: TopUpDecision,
    ) -> None:
        pass
    
    @abstractmethod
    async def top_up_managed_deployment(
        self,
        deployment: DrainingDeployment,
        decision: TopUpDecision,
    ) -> None:
        pass


class FallbackTopUpExecutor(TopUpExecutor):
    
    async def top_up_custodial_deployment(
        self,
        deployment: DrainingDeployment,
        decision: TopUpDecision,
    ) -> None:
        log_event(
            logger,
            logging.DEBUG,
            "TOPPING_UP_CUSTODIAL_DEPLOYMENT",
            deployment=deployment.dseq,
            amount=str(decision.amount),
            warning="Not implemented yet",
        )
    
    async def top_up_managed_deployment(
        self,
        deployment: DrainingDeployment,
        decision: TopUpDecision,
    ) -> None:
        log_event(
            logger,
            logging.DEBUG,
            "TOPPING_UP_MANAGED_DEPLOYMENT",
            deployment=deployment.dseq,
            amount=str(decision.amount),
            warning="Not implemented yet",
        )
