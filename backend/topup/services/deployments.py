"""
Top-Up Reconciler - Draining Deployments

Interface for locating deployments whose runway is running out.
The fallback returns nothing until the lease query is wired in.
"""

import logging
from abc import ABC, abstractmethod

from topup.core.logging import log_event
from topup.models.grants import DrainingDeployment

logger = logging.getLogger(__name__)


class DeploymentSource(ABC):
    """Yields draining deployments for an owner."""
    
    @abstractmethod
    async def retrieve_draining_deployments(self, owner: str) -> list[DrainingDeployment]:
        """
        Return deployments of `owner` below the runway threshold.
        
        An owner with no draining deployments yields an empty list, never
        an error.
        """
        pass


class DrainingDeploymentFallback(DeploymentSource):
    
    async def retrieve_draining_deployments(self, owner: str) -> list[DrainingDeployment]:
        log_event(
            logger,
            logging.DEBUG,
            "RETRIEVING_DRAINING_DEPLOYMENTS",
            owner=owner,
            warning="Not implemented yet",
        )
        return []
