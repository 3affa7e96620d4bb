# routers/dashboard.py
"""
Dashboard API routes: headline figures, per-group performance and recent activity.
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_session
from schemas.dashboard import (
     DashboardStatsResponse,
     GroupPerformanceResponse,
     OverdueCountResponse,
     RecentActivityResponse,
)
from services import status_service
from services.periods import PERIOD_PATTERN, current_period
from utils.auth import Principal, require_staff

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get(
     "/stats",
     response_model=DashboardStatsResponse,
     summary="Dashboard totals for a month"
)
def get_dashboard_stats(
     period: Optional[str] = Query(None, pattern=PERIOD_PATTERN, description="Billing month, defaults to the current one"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     """
     Totals for members, groups and the month's payments.

     total_amount_paid counts received, pending and settled money together.
     """
     now = datetime.now()
     period = period or current_period(now)
     stats = status_service.dashboard_stats(db, period, now)
     return DashboardStatsResponse(period=period, **vars(stats))


@router.get(
     "/overdue-count",
     response_model=OverdueCountResponse,
     summary="Number of overdue payments"
)
def get_overdue_count(
     period: Optional[str] = Query(None, pattern=PERIOD_PATTERN, description="Billing month, defaults to the current one"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     now = datetime.now()
     period = period or current_period(now)
     return OverdueCountResponse(
          period=period,
          overdue_payments=status_service.count_overdue_payments(db, period, now),
     )


@router.get(
     "/group-performance",
     response_model=List[GroupPerformanceResponse],
     summary="Money collected and outstanding per group"
)
def get_group_performance(
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return [
          GroupPerformanceResponse.model_validate(row)
          for row in status_service.group_performance(db)
     ]


@router.get(
     "/recent-activities",
     response_model=List[RecentActivityResponse],
     summary="Latest payments and member registrations"
)
def get_recent_activities(
     limit: int = Query(20, ge=1, le=100, description="Number of entries"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return [
          RecentActivityResponse.model_validate(activity)
          for activity in status_service.recent_activities(db, limit)
     ]
