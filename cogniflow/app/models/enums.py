"""
User roles enumeration.

Defines the role types for the ERP system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.
    
    Roles:
        ADMIN: Full access, including account creation and audit logs
        ACCOUNTANT: Records transactions, invoices and ledger entries
        MANAGER: Read-only access to finance data and reports
        USER: Read-only access (default role)
    """
    ADMIN = "admin"
    ACCOUNTANT = "accountant"
    MANAGER = "manager"
    USER = "user"
