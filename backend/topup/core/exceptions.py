"""
Top-Up Reconciler - Error Taxonomy

Every failure raised inside a grant's processing is caught at the
per-grant boundary. Page fetch failures are not, and end the run.
"""


class TopUpError(Exception):
    """Base error for the top-up reconciler."""
    pass


class RegistryUnavailable(TopUpError):
    """Grant, allowance or balance source unreachable or erroring."""
    
    def __init__(self, message: str, url: str = "", status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class MalformedAmount(TopUpError):
    """Upstream numeric field could not be parsed."""
    
    def __init__(self, value: object, field: str = "amount"):
        self.value = value
        self.field = field
        super().__init__(f"Malformed {field}: {value!r}")


class ReconciliationTimeout(TopUpError):
    """A page fetch or grant exceeded its deadline."""
    
    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{operation} timed out after {timeout}s")


class WalletNotConfigured(TopUpError):
    """A master wallet role has no address to resolve."""
    
    def __init__(self, role: str):
        self.role = role
        super().__init__(f"No address configured for wallet role {role}")


class MalformedGrant(TopUpError):
    """A deployment grant from the registry does not match the grant schema."""
    
    def __init__(self, granter: str, grantee: str, detail: str):
        self.granter = granter
        self.grantee = grantee
        super().__init__(f"Unreadable grant {granter} -> {grantee}: {detail}")
