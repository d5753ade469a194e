"""
Purchases App - Course Purchases and Ledger

Customers buy courses with their account balance. A purchase writes the course
grant, a ledger transaction and the balance debit in one store transaction.

Architecture:
- Services: purchase_course, record_transaction, reconcile_balance
- Views: PurchaseViewSet (purchase, transaction history, reconciliation)
- Exceptions: Domain exception hierarchy in services/exceptions.py
"""

__version__ = '1.0.0'
