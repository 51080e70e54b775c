"""
Pure calculation engines (zero I/O).

- costing: weighted-average unit cost on receipt
- allocation: batch draw planning for issues
"""

from warehouse_engines.allocation import AllocationPlan, BatchDraw, plan_allocation
from warehouse_engines.costing import extended_cost, recompute_average_cost, round_money

__all__ = [
    "AllocationPlan",
    "BatchDraw",
    "extended_cost",
    "plan_allocation",
    "recompute_average_cost",
    "round_money",
]
