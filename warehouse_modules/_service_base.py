"""
Shared plumbing for module services.

Module services own their transaction boundary: every public write method
runs inside ``_unit_of_work()``, which commits on success and rolls back
(then re-raises) on any exception.  Kernel services underneath only flush.
"""

from contextlib import contextmanager
from typing import Iterator, TypeVar

from sqlalchemy.orm import Session

from warehouse_kernel.db.base import Base
from warehouse_kernel.domain.clock import Clock, SystemClock
from warehouse_kernel.logging_config import get_logger
from warehouse_kernel.services.product_lock import ProductLockRegistry, default_product_locks
from warehouse_modules.inventory.config import InventoryConfig

logger = get_logger("modules.unit_of_work")

ModelT = TypeVar("ModelT", bound=Base)


class ModuleService:
    """Base for services that commit."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: InventoryConfig | None = None,
        locks: ProductLockRegistry | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or InventoryConfig.with_defaults()
        self._locks = locks if locks is not None else default_product_locks

    @contextmanager
    def _unit_of_work(self, operation: str) -> Iterator[Session]:
        try:
            yield self._session
            self._session.commit()
        except Exception:
            self._session.rollback()
            logger.warning(
                "unit_of_work_rolled_back",
                extra={"operation": operation},
                exc_info=True,
            )
            raise

    def _fresh(self, model: type[ModelT], ident: str | None, lock: bool = False) -> ModelT | None:
        """Load ``model`` by id, refreshing any stale identity-map copy."""
        if ident is None:
            return None
        return self._session.get(
            model, ident, populate_existing=True, with_for_update=lock or None,
        )
