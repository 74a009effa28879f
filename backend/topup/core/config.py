from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""
    
    # App
    APP_NAME: str = "TOP-UP RECONCILER"
    LOG_LEVEL: str = "INFO"
    
    # Chain REST endpoint (authz, feegrant, bank)
    API_NODE_URL: str = "http://localhost:1317"
    HTTP_TIMEOUT_SECONDS: float = 10.0
    DEPLOYMENT_AUTHORIZATION_TYPE: str = "/akash.deployment.v1beta3.DepositDeploymentAuthorization"
    
    # Reconciliation
    TOP_UP_CONCURRENCY: int = 10
    UNLIMITED_FEES_MANAGED_BALANCE: Decimal = Decimal("1000000")
    GRANT_TIMEOUT_SECONDS: float = 60.0
    PAGE_TIMEOUT_SECONDS: float = 30.0
    
    # Master wallets (first address per role)
    MANAGED_WALLET_ADDRESS: Optional[str] = None
    UAKT_TOP_UP_WALLET_ADDRESS: Optional[str] = None
    USDC_TOP_UP_WALLET_ADDRESS: Optional[str] = None
    
    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
