# routers/analytics.py
"""
Analytics API routes: collected vs expected money and payment trends.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_session
from schemas.dashboard import (
     AnalyticsOverviewResponse,
     AnalyticsStatsResponse,
     MonthlyTrendResponse,
     PaymentsByStatusResponse,
)
from services import status_service
from services.periods import PERIOD_PATTERN, current_period
from utils.auth import Principal, require_staff

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def _stats_response(db: Session, period: str) -> AnalyticsStatsResponse:
     stats = status_service.analytics_stats(db, period)
     return AnalyticsStatsResponse(period=period, **vars(stats))


@router.get(
     "",
     response_model=AnalyticsOverviewResponse,
     summary="Analytics overview"
)
def get_analytics(
     period: Optional[str] = Query(None, pattern=PERIOD_PATTERN, description="Billing month, defaults to the current one"),
     months: int = Query(12, ge=1, le=60, description="Number of months in the trend"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return AnalyticsOverviewResponse(
          stats=_stats_response(db, period or current_period()),
          payments_by_status=status_service.payments_by_status(db),
          monthly_trends=[
               MonthlyTrendResponse.model_validate(trend, from_attributes=True)
               for trend in status_service.monthly_trends(db, months)
          ],
     )


@router.get(
     "/stats",
     response_model=AnalyticsStatsResponse,
     summary="Expected, collected and pending money for a month"
)
def get_analytics_stats(
     period: Optional[str] = Query(None, pattern=PERIOD_PATTERN, description="Billing month, defaults to the current one"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return _stats_response(db, period or current_period())


@router.get(
     "/payments-by-status",
     response_model=List[PaymentsByStatusResponse],
     summary="Payment count and total per status"
)
def get_payments_by_status(
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return status_service.payments_by_status(db)


@router.get(
     "/monthly-trends",
     response_model=List[MonthlyTrendResponse],
     summary="Payments per month"
)
def get_monthly_trends(
     months: int = Query(12, ge=1, le=60),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return [
          MonthlyTrendResponse.model_validate(trend, from_attributes=True)
          for trend in status_service.monthly_trends(db, months)
     ]
