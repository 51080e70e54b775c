"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor and session contract for kernel services.  Kernel
    services persist through ``session.flush()`` -- never ``session.commit()``.
    The module service that invoked them owns the transaction boundary, which
    is what makes a receipt or an issue commit-or-rollback as one unit.

Architecture position:
    Kernel > Services.  Every write-side service in
    ``warehouse_kernel/services/`` extends this class.
"""

from abc import ABC

from sqlalchemy.orm import Session

from warehouse_kernel.domain.clock import Clock, SystemClock


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.

    Non-goals:
        - Does NOT provide read-only query methods -- those belong in
          ``warehouse_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
