"""Top-Up Reconciler - grant reconciliation for draining deployments."""

__version__ = "0.1.0"
