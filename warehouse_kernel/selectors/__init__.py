"""Read-only selectors."""

from warehouse_kernel.selectors.batch_selector import BatchSelector
from warehouse_kernel.selectors.ledger_selector import LedgerSelector

__all__ = ["BatchSelector", "LedgerSelector"]
