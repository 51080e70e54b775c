"""
Module ORM Registry (``warehouse_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created, and provide ``create_all_tables()`` -- the entry point that
registers every model and then creates every table.

Architecture position
---------------------
**Modules layer** -- utility.  Imports from sibling ``warehouse_modules``
packages and from ``warehouse_kernel.db.engine`` (allowed: modules → kernel).
MUST NOT be imported by ``warehouse_kernel`` or ``warehouse_services``.

Usage
-----
Scripts and ``tests/conftest.py`` call ``create_all_tables()``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``warehouse_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    import warehouse_kernel.models  # noqa: F401
    import warehouse_modules.fulfillment.orm  # noqa: F401
    import warehouse_modules.purchasing.orm  # noqa: F401


def create_all_tables() -> None:
    """Create kernel + module tables and register the immutability listeners.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from warehouse_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
