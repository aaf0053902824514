"""
Dashboard KPI and chart schemas.
"""

from pydantic import BaseModel
from typing import List
from cogniflow.app.schemas.common import Money


class Kpi(BaseModel):
    key: str
    title: str
    value: Money
    change_percent: float
    trend: str  # up | down | flat


class KpiResponse(BaseModel):
    kpis: List[Kpi]


class ChartDataset(BaseModel):
    label: str
    data: List[Money]


class ChartData(BaseModel):
    labels: List[str]
    datasets: List[ChartDataset]
