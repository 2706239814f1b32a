"""Weekly closure package."""

from ledger.closures.engine import ClosureEngine, compute_allocation

__all__ = ["ClosureEngine", "compute_allocation"]
