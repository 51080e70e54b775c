"""
Fulfillment Workflows.

State machines for pick requests and customer sales orders.
"""

from warehouse_kernel.domain.workflow import Transition, Workflow
from warehouse_kernel.logging_config import get_logger
from warehouse_modules.fulfillment.models import RequestStatus, SalesOrderStatus

logger = get_logger("modules.fulfillment.workflows")


# -----------------------------------------------------------------------------
# Request Workflow
# -----------------------------------------------------------------------------

_R = RequestStatus

REQUEST_WORKFLOW = Workflow(
    name="request",
    description="Pick request approval, issue and close",
    initial_state=_R.AWAITING_APPROVAL.value,
    states=tuple(s.value for s in _R),
    transitions=(
        Transition(_R.AWAITING_APPROVAL.value, _R.APPROVED.value, action="approve"),
        Transition(_R.AWAITING_APPROVAL.value, _R.REJECTED.value, action="reject"),
        Transition(_R.APPROVED.value, _R.PENDING.value, action="issue"),
        Transition(_R.PENDING.value, _R.PENDING.value, action="issue"),
        Transition(_R.PENDING.value, _R.CLOSED.value, action="close"),
    ),
    terminal_states=(_R.REJECTED.value, _R.CLOSED.value),
)


# -----------------------------------------------------------------------------
# Sales Order Workflow
# -----------------------------------------------------------------------------

_O = SalesOrderStatus

SALES_ORDER_WORKFLOW = Workflow(
    name="sales_order",
    description="Customer order fulfillment and close",
    initial_state=_O.CONFIRMED.value,
    states=tuple(s.value for s in _O),
    transitions=(
        Transition(_O.CONFIRMED.value, _O.PENDING.value, action="issue"),
        Transition(_O.PENDING.value, _O.PENDING.value, action="issue"),
        Transition(_O.PENDING.value, _O.CLOSED.value, action="close"),
    ),
    terminal_states=(_O.CLOSED.value,),
)

for _wf in (REQUEST_WORKFLOW, SALES_ORDER_WORKFLOW):
    logger.info(
        f"{_wf.name}_workflow_registered",
        extra={
            "workflow_name": _wf.name,
            "state_count": len(_wf.states),
            "transition_count": len(_wf.transitions),
            "initial_state": _wf.initial_state,
        },
    )
