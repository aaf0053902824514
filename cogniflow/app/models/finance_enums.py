"""
Finance enumerations.
"""

import enum


class AccountType(str, enum.Enum):
    """Ledger account classification; drives the debit/credit sign rule."""
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


# Debits increase these account types, credits increase the rest
DEBIT_NORMAL_TYPES = frozenset({AccountType.ASSET, AccountType.EXPENSE})


class TransactionType(str, enum.Enum):
    """Business-level transaction type."""
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"


class TransactionStatus(str, enum.Enum):
    """Transaction status enumeration."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InvoiceStatus(str, enum.Enum):
    """Invoice status enumeration."""
    PENDING = "pending"  # Issued, awaiting payment
    PAID = "paid"
    OVERDUE = "overdue"  # Set explicitly; also derivable from due_date
    CANCELLED = "cancelled"


class InvoiceType(str, enum.Enum):
    """Receivable (we are owed) or payable (we owe)."""
    ACCOUNTS_RECEIVABLE = "accounts_receivable"
    ACCOUNTS_PAYABLE = "accounts_payable"


class InsightType(str, enum.Enum):
    """Insight category."""
    ANOMALY = "anomaly"
    PREDICTION = "prediction"
    RECOMMENDATION = "recommendation"
    OPTIMIZATION = "optimization"


class InsightSeverity(str, enum.Enum):
    """Insight severity."""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
