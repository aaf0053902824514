"""
AI Insight database model.

Advisory records produced by the insight engine.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum, JSON
from sqlalchemy.sql import func
from cogniflow.app.db.session import Base
from cogniflow.app.models.finance_enums import InsightType, InsightSeverity


class AiInsight(Base):
    """
    Insight model.
    
    dedup_key (rule + entity + time bucket) is unique so repeated analysis
    runs cannot store the same insight twice. Only is_read ever changes.
    """
    __tablename__ = "ai_insights"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    type = Column(Enum(InsightType), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(Enum(InsightSeverity), default=InsightSeverity.INFO, nullable=False)
    data = Column(JSON, nullable=True)
    
    rule_id = Column(String(50), nullable=False, index=True)
    dedup_key = Column(String(64), unique=True, index=True, nullable=False)
    
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    
    def __repr__(self):
        return f"<AiInsight(id={self.id}, type='{self.type.value}', rule='{self.rule_id}')>"
