"""
Insight engine configuration.

Named thresholds for the heuristic insight rules. Every value can be
overridden through settings (INSIGHT_* environment variables).
"""

from dataclasses import dataclass, replace
from decimal import Decimal

from cogniflow.app.core.config import settings

# Anomaly thresholds
LARGE_AMOUNT_MULTIPLIER = Decimal("3")  # Flag amounts above N x mean of prior transactions
DUPLICATE_WINDOW_HOURS = 24  # Same amount + category within this window is a duplicate

# Cash flow prediction
TRAILING_MONTHS = 6  # History window for monthly averages
PROJECTION_MONTHS = 3  # Next quarter
LAST_YEAR_FACTOR = Decimal("0.92")  # Stand-in baseline, not a historical lookup

# Cost saving
SAVINGS_RATE = Decimal("0.12")

# Tax deduction
DEDUCTIBLE_SHARE = Decimal("0.30")
TAX_RATE = Decimal("0.25")

# Deduplication bucket for periodic (non-anomaly) insights
DEDUP_WINDOW_HOURS = 24


@dataclass(frozen=True)
class InsightPolicy:
    """Thresholds handed to the insight rules."""
    large_amount_multiplier: Decimal = LARGE_AMOUNT_MULTIPLIER
    duplicate_window_hours: int = DUPLICATE_WINDOW_HOURS
    trailing_months: int = TRAILING_MONTHS
    projection_months: int = PROJECTION_MONTHS
    last_year_factor: Decimal = LAST_YEAR_FACTOR
    savings_rate: Decimal = SAVINGS_RATE
    deductible_share: Decimal = DEDUCTIBLE_SHARE
    tax_rate: Decimal = TAX_RATE
    dedup_window_hours: int = DEDUP_WINDOW_HOURS


def load_policy() -> InsightPolicy:
    """Build the policy from defaults plus any settings overrides."""
    overrides = {}
    if settings.insight_large_amount_multiplier is not None:
        overrides["large_amount_multiplier"] = Decimal(str(settings.insight_large_amount_multiplier))
    if settings.insight_duplicate_window_hours is not None:
        overrides["duplicate_window_hours"] = settings.insight_duplicate_window_hours
    if settings.insight_savings_rate is not None:
        overrides["savings_rate"] = Decimal(str(settings.insight_savings_rate))
    if settings.insight_tax_rate is not None:
        overrides["tax_rate"] = Decimal(str(settings.insight_tax_rate))
    if settings.insight_deductible_share is not None:
        overrides["deductible_share"] = Decimal(str(settings.insight_deductible_share))
    if settings.insight_dedup_window_hours is not None:
        overrides["dedup_window_hours"] = settings.insight_dedup_window_hours
    return replace(InsightPolicy(), **overrides)
