from .documents import (
    DocumentMixin,
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

__all__ = [
    'DocumentMixin',
    'ManagerDocument', 'UserDocument', 'RepresentativeDocument',
    'OrderDocument', 'TempOrderDocument', 'TransactionDocument',
    'ConversationDocument', 'NotificationDocument', 'SettingDocument',
    'ExpenseDocument', 'DepositDocument', 'ExternalDebtDocument', 'CreditorDocument',
    'ManualLabelDocument', 'InstantSaleDocument',
]
