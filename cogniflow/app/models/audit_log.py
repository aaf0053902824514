"""
Audit Log Database Model.

Append-only record of mutating actions on finance entities and auth events.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from cogniflow.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.
    
    Events logged:
    - LOGIN_SUCCESS / LOGIN_FAILED / LOGOUT / USER_REGISTERED
    - ACCOUNT_CREATED / ACCOUNT_UPDATED
    - LEDGER_ENTRY_POSTED
    - TRANSACTION_CREATED / TRANSACTION_UPDATED
    - INVOICE_CREATED / INVOICE_UPDATED
    - EXCHANGE_RATE_CREATED / INSIGHT_READ / ANALYSIS_RUN
    """
    __tablename__ = "audit_logs"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)
    
    # What action was performed
    action = Column(String(100), nullable=False, index=True)
    
    # Which entity was touched
    entity_type = Column(String(50), nullable=True, index=True)
    entity_id = Column(Integer, nullable=True, index=True)
    
    # Additional context (JSON for flexibility)
    details = Column(JSON, nullable=True)
    
    ip_address = Column(String(50), nullable=True)
    
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    
    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity={self.entity_type}:{self.entity_id})>"
