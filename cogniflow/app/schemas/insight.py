"""
AI insight Pydantic schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Any, Dict, List, Optional
from cogniflow.app.models.finance_enums import InsightType, InsightSeverity


class AiInsightResponse(BaseModel):
    id: int
    type: InsightType
    title: str
    description: str
    severity: InsightSeverity
    data: Optional[Dict[str, Any]]
    rule_id: str
    is_read: bool
    created_at: datetime
    
    class Config:
        from_attributes = True


class AnalysisRunResponse(BaseModel):
    """Result of a full analysis pass: only newly stored insights are listed."""
    created: int
    insights: List[AiInsightResponse]
