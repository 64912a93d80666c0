from __future__ import annotations

from ..extensions import db


class DocumentMixin:
    """
    Storage shape shared by every collection table.

    WHY: The back office writes schema-flexible documents (nested maps,
    arrays, fields added over time). Each collection keeps one row per
    document: an opaque string key, the JSON payload, and a version counter
    used for compare-and-swap writes.

    INVARIANTS:
    - `data` never contains the `id` key; the primary key is authoritative.
    - `version_id` starts at 1 and is bumped by every write of the row.
    """
    id = db.Column(db.String(64), primary_key=True)
    data = db.Column(db.JSON, nullable=False, default=dict)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class ManagerDocument(DocumentMixin, db.Model):
    __tablename__ = "managers"


class UserDocument(DocumentMixin, db.Model):
    """Customer account; `debt` and `orderCount` are recalculated projections."""
    __tablename__ = "users"


class RepresentativeDocument(DocumentMixin, db.Model):
    """Delivery representative; `assignedOrders` tracks current assignments."""
    __tablename__ = "representatives"


class OrderDocument(DocumentMixin, db.Model):
    __tablename__ = "orders"


class TempOrderDocument(DocumentMixin, db.Model):
    """Consolidated provisional invoice holding a list of sub-orders."""
    __tablename__ = "temp_orders"


class TransactionDocument(DocumentMixin, db.Model):
    """Financial ledger entry (order charge or payment)."""
    __tablename__ = "transactions"


class ConversationDocument(DocumentMixin, db.Model):
    __tablename__ = "conversations"


class NotificationDocument(DocumentMixin, db.Model):
    __tablename__ = "notifications"


class SettingDocument(DocumentMixin, db.Model):
    """Singleton application settings (row id `main`)."""
    __tablename__ = "settings"


class ExpenseDocument(DocumentMixin, db.Model):
    __tablename__ = "expenses"


class DepositDocument(DocumentMixin, db.Model):
    __tablename__ = "deposits"


class ExternalDebtDocument(DocumentMixin, db.Model):
    __tablename__ = "external_debts"


class CreditorDocument(DocumentMixin, db.Model):
    """Supplier the business owes; `totalDebt` is recalculated from external debts."""
    __tablename__ = "creditors"


class ManualLabelDocument(DocumentMixin, db.Model):
    __tablename__ = "manual_labels"


class InstantSaleDocument(DocumentMixin, db.Model):
    __tablename__ = "instant_sales"
