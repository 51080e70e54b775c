"""
Purchasing Workflows.

State machine for vendor purchase orders.
"""

from warehouse_kernel.domain.workflow import Transition, Workflow
from warehouse_kernel.logging_config import get_logger
from warehouse_modules.purchasing.models import PurchaseOrderStatus

logger = get_logger("modules.purchasing.workflows")

NEW = PurchaseOrderStatus.NEW.value
PENDING = PurchaseOrderStatus.PENDING.value
RECEIVED = PurchaseOrderStatus.RECEIVED.value
REJECTED = PurchaseOrderStatus.REJECTED.value


# -----------------------------------------------------------------------------
# Purchase Order Workflow
# -----------------------------------------------------------------------------

PURCHASE_ORDER_WORKFLOW = Workflow(
    name="purchase_order",
    description="Vendor purchase order pricing and receiving",
    initial_state=NEW,
    states=(NEW, PENDING, RECEIVED, REJECTED),
    transitions=(
        Transition(NEW, PENDING, action="price"),
        Transition(PENDING, PENDING, action="price"),
        Transition(NEW, REJECTED, action="reject"),
        Transition(PENDING, REJECTED, action="reject"),
        Transition(NEW, RECEIVED, action="receive"),
        Transition(PENDING, RECEIVED, action="receive"),
    ),
    terminal_states=(RECEIVED, REJECTED),
)

logger.info(
    "purchase_order_workflow_registered",
    extra={
        "workflow_name": PURCHASE_ORDER_WORKFLOW.name,
        "state_count": len(PURCHASE_ORDER_WORKFLOW.states),
        "transition_count": len(PURCHASE_ORDER_WORKFLOW.transitions),
        "initial_state": PURCHASE_ORDER_WORKFLOW.initial_state,
    },
)
