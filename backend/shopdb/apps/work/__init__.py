# backend/shopdb/apps/work/__init__.py
"""
Work app

- models / schemas: work orders and their billing line items
- lifecycle: the status transition table and the only status writer
- billing: labour / parts / subcontract rollup and the invoice view
- numbering: WO<YY><MM>-<seq> allocation
- services / router: tenant-scoped CRUD and the HTTP surface
"""
