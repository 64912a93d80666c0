# Overview: Domain constants shared by the back-office services.

# =============================================================================
# ORDER STATUS
# =============================================================================

STATUS_PENDING = "pending"
STATUS_PROCESSED = "processed"
STATUS_READY = "ready"
STATUS_SHIPPED = "shipped"
STATUS_ARRIVED_DUBAI = "arrived_dubai"
STATUS_ARRIVED_BENGHAZI = "arrived_benghazi"
STATUS_ARRIVED_TOBRUK = "arrived_tobruk"
STATUS_OUT_FOR_DELIVERY = "out_for_delivery"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"
STATUS_PAID = "paid"

ORDER_STATUSES = [
    STATUS_PENDING,
    STATUS_PROCESSED,
    STATUS_READY,
    STATUS_SHIPPED,
    STATUS_ARRIVED_DUBAI,
    STATUS_ARRIVED_BENGHAZI,
    STATUS_ARRIVED_TOBRUK,
    STATUS_OUT_FOR_DELIVERY,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
    STATUS_PAID,
]

# Statuses whose remaining amount counts toward a customer's debt
ACTIVE_ORDER_STATUSES = [s for s in ORDER_STATUSES if s != STATUS_CANCELLED]


# =============================================================================
# LEDGER
# =============================================================================

TRANSACTION_ORDER = "order"
TRANSACTION_PAYMENT = "payment"

TRANSACTION_STATUS_PAID = "paid"
TRANSACTION_STATUS_COMPLETED = "completed"

# Customer ids of ledger entries paid against a temporary sub-order
TEMP_CUSTOMER_PREFIX = "TEMP-"


# =============================================================================
# DEPOSITS / DEBTS / MESSAGES
# =============================================================================

DEPOSIT_PENDING = "pending"
DEPOSIT_COLLECTED = "collected"
COLLECTED_BY_ADMIN = "admin"

EXTERNAL_DEBT_PENDING = "pending"

SENDER_USER = "user"
SENDER_SUPPORT = "support"

NOTIFY_ALL = "all"
NOTIFY_SPECIFIC = "specific"


# =============================================================================
# SETTINGS
# =============================================================================

SETTINGS_DOCUMENT_ID = "main"

DEFAULT_APP_SETTINGS = {
    "exchangeRate": 1,
    "pricePerKiloLYD": 0,
    "pricePerKiloUSD": 0,
}

MANAGER_PERMISSIONS = [
    "users", "employees", "representatives", "orders", "shipping_label",
    "temporary_users", "financial_reports", "instant_sales", "deposits",
    "expenses", "creditors", "support", "notifications", "exchange_rate",
    "data_export",
]
