"""Kernel ORM models for the warehouse."""

from warehouse_kernel.models.product import Product
from warehouse_kernel.models.product_batch import ProductBatch
from warehouse_kernel.models.stock_transaction import StockTransaction

__all__ = [
    "Product",
    "ProductBatch",
    "StockTransaction",
]
