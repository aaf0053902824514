"""
Dashboard API Endpoints.

KPI cards, chart series and AI insights.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from cogniflow.app.db.session import get_db
from cogniflow.app.core.dependencies import get_current_user
from cogniflow.app.core.guards import require_role, FINANCE_WRITERS
from cogniflow.app.models.finance_enums import InsightType
from cogniflow.app.schemas.dashboard import KpiResponse, ChartData
from cogniflow.app.schemas.insight import AiInsightResponse, AnalysisRunResponse
from cogniflow.app.services.dashboard import DashboardService
from cogniflow.app.services.insights import InsightEngine, list_insights, mark_insight_read
from cogniflow.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/kpis", response_model=KpiResponse)
async def get_kpis(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """This month vs. last month."""
    return await DashboardService.get_kpis(db)


@router.get("/charts/revenue", response_model=ChartData)
async def get_revenue_chart(
    months: int = Query(6, ge=1, le=24),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await DashboardService.revenue_chart(db, months=months)


@router.get("/charts/expense-categories", response_model=ChartData)
async def get_expense_categories_chart(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await DashboardService.expense_categories_chart(db)


@router.get("/ai-insights", response_model=List[AiInsightResponse])
async def get_ai_insights(
    type: Optional[InsightType] = None,
    is_read: Optional[bool] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Stored insights, newest first."""
    return await list_insights(db, type=type, is_read=is_read, limit=limit)


@router.post("/ai-insights/run", response_model=AnalysisRunResponse)
async def run_ai_analysis(
    current_user: dict = Depends(require_role(FINANCE_WRITERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Run every insight rule over the transaction history.

    Only insights not stored before are returned; a rerun on unchanged data
    returns nothing new.
    """
    created = await InsightEngine().run_analysis(db)
    response = AnalysisRunResponse(
        created=len(created),
        insights=[AiInsightResponse.model_validate(i) for i in created]
    )

    await log_user_action(
        db, current_user, AuditAction.ANALYSIS_RUN, "ai_insight", None,
        {"created": len(created)}
    )
    return response


@router.patch("/ai-insights/{insight_id}/read", response_model=AiInsightResponse)
async def read_ai_insight(
    insight_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    insight = await mark_insight_read(db, insight_id)

    await log_user_action(db, current_user, AuditAction.INSIGHT_READ, "ai_insight", insight.id)
    return insight
