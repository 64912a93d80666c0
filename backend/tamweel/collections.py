# Overview: Logical collection names and the tables that back them.

"""
Collection registry.

Every document-store call names a logical collection (the names the rest
of the back office and its exported data files use). This module is the
only place that maps those names onto mapped tables; it is built once at
import time and consulted by reference.
"""

from __future__ import annotations

from .models import (
    ManagerDocument,
    UserDocument,
    RepresentativeDocument,
    OrderDocument,
    TempOrderDocument,
    TransactionDocument,
    ConversationDocument,
    NotificationDocument,
    SettingDocument,
    ExpenseDocument,
    DepositDocument,
    ExternalDebtDocument,
    CreditorDocument,
    ManualLabelDocument,
    InstantSaleDocument,
)


MANAGERS = "managers"
USERS = "users"
REPRESENTATIVES = "representatives"
ORDERS = "orders"
TEMP_ORDERS = "tempOrders"
TRANSACTIONS = "transactions"
CONVERSATIONS = "conversations"
NOTIFICATIONS = "notifications"
SETTINGS = "settings"
EXPENSES = "expenses"
DEPOSITS = "deposits"
EXTERNAL_DEBTS = "externalDebts"
CREDITORS = "creditors"
MANUAL_LABELS = "manualLabels"
INSTANT_SALES = "instantSales"


COLLECTIONS = {
    MANAGERS: ManagerDocument,
    USERS: UserDocument,
    REPRESENTATIVES: RepresentativeDocument,
    ORDERS: OrderDocument,
    TEMP_ORDERS: TempOrderDocument,
    TRANSACTIONS: TransactionDocument,
    CONVERSATIONS: ConversationDocument,
    NOTIFICATIONS: NotificationDocument,
    SETTINGS: SettingDocument,
    EXPENSES: ExpenseDocument,
    DEPOSITS: DepositDocument,
    EXTERNAL_DEBTS: ExternalDebtDocument,
    CREDITORS: CreditorDocument,
    MANUAL_LABELS: ManualLabelDocument,
    INSTANT_SALES: InstantSaleDocument,
}


class UnknownCollectionError(KeyError):
    """Raised when a collection name has no backing table."""
    pass


def model_for(collection: str):
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise UnknownCollectionError(f"Unknown collection: {collection}") from None
