"""Stateful services composing kernel stores with pure engines."""

from warehouse_services.allocation_service import Allocator

__all__ = ["Allocator"]
