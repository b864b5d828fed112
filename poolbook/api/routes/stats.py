"""
Statistics API endpoints.

Personal swim totals, the all-time leaderboard, and reserved vs. attended
occupancy reports for administrators.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from ...core.scheduling.statistics import ReportMode, WindowTotals
from ..dependencies import AuthenticatedUser, ClockDep, StatisticsDep

router = APIRouter()


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------

class WindowTotalsResponse(BaseModel):
    laps: int
    meters: int
    minutes: int

    @classmethod
    def from_domain(cls, totals: WindowTotals) -> "WindowTotalsResponse":
        return cls(laps=totals.laps, meters=totals.meters, minutes=totals.minutes)


class BestDayResponse(BaseModel):
    date: Optional[date]
    laps: int
    meters: int


class PersonalStatsResponse(BaseModel):
    user_id: str
    weekly: WindowTotalsResponse
    monthly: WindowTotalsResponse
    yearly: WindowTotalsResponse
    best_day: BestDayResponse


class LeaderboardItem(BaseModel):
    rank: int
    user_id: str
    user_name: str
    total_laps: int
    total_meters: int
    total_minutes: int


class ReportRowResponse(BaseModel):
    label: str
    reserved: int
    attended: int
    compliance: float


class OccupancyReportResponse(BaseModel):
    mode: ReportMode
    reference_date: date
    total_reserved: int
    total_attended: int
    attendance_rate: float
    no_show_rate: float
    rows: list[ReportRowResponse]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/users/{user_id}",
    response_model=PersonalStatsResponse,
    summary="Personal statistics",
    description="Weekly, monthly and yearly totals plus the best day",
)
async def personal_stats(
    user_id: str,
    statistics: StatisticsDep,
    clock: ClockDep,
    api_key: AuthenticatedUser = None,
) -> PersonalStatsResponse:
    stats = statistics.personal_stats(user_id, now=clock())
    return PersonalStatsResponse(
        user_id=stats.user_id,
        weekly=WindowTotalsResponse.from_domain(stats.weekly),
        monthly=WindowTotalsResponse.from_domain(stats.monthly),
        yearly=WindowTotalsResponse.from_domain(stats.yearly),
        best_day=BestDayResponse(
            date=stats.best_day_date,
            laps=stats.best_day_laps,
            meters=stats.best_day_meters,
        ),
    )


@router.get(
    "/leaderboard",
    response_model=list[LeaderboardItem],
    summary="Leaderboard",
    description="Top swimmers by all-time laps",
)
async def leaderboard(
    statistics: StatisticsDep,
    api_key: AuthenticatedUser = None,
) -> list[LeaderboardItem]:
    return [
        LeaderboardItem(
            rank=entry.rank,
            user_id=entry.user_id,
            user_name=entry.user_name,
            total_laps=entry.total_laps,
            total_meters=entry.total_meters,
            total_minutes=entry.total_minutes,
        )
        for entry in statistics.leaderboard()
    ]


@router.get(
    "/occupancy",
    response_model=OccupancyReportResponse,
    summary="Occupancy report",
    description="Reserved vs. attended head count for a day, week or month",
)
async def occupancy_report(
    statistics: StatisticsDep,
    api_key: AuthenticatedUser = None,
    mode: ReportMode = ReportMode.DAILY,
    reference_date: date = Query(alias="date"),
) -> OccupancyReportResponse:
    report = statistics.occupancy_report(mode, reference_date)
    return OccupancyReportResponse(
        mode=report.mode,
        reference_date=report.reference_date,
        total_reserved=report.total_reserved,
        total_attended=report.total_attended,
        attendance_rate=report.attendance_rate,
        no_show_rate=report.no_show_rate,
        rows=[
            ReportRowResponse(
                label=row.label,
                reserved=row.reserved,
                attended=row.attended,
                compliance=row.compliance,
            )
            for row in report.rows
        ],
    )
