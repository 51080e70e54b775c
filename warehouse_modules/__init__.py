"""
Warehouse Modules.

Orchestration layers over the warehouse kernel, engines and services.
Each module contains:
- Domain models (status enums, inputs, read views)
- ORM persistence
- Workflows (state machines)
- A service that owns the transaction boundary

Modules:
- inventory: products, manual stock-in, batch/ledger queries, reconciliation
- purchasing: vendor purchase orders, pricing and receiving
- fulfillment: sales orders, pick requests and stock issue
"""
