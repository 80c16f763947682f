"""
API route modules.

This package contains subrouters for:
- Auth: register, login, logout, refresh, and current principal
- Businesses, Categories, Expenses, Suppliers, Invitations
- Inventory (warehouses, stock, sales) and Statistics (transactions, audit trail, summary)
- Reports: CSV/XLSX/PDF exports of expenses, transactions, suppliers and the audit trail

Every tenant route answers with the {data, error, message} envelope.
Routers are included from quantura.api.main (under the /api/v1 prefix).
"""
