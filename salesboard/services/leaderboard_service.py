import datetime
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, TypeVar, Union
from sqlalchemy.ext.asyncio import AsyncSession
from salesboard.core.config import ALERT_ON_TRACK_PERCENT, ALERT_WARNING_PERCENT
from salesboard.core.constants import AlertLevel
from salesboard.services.directory_service import DirectoryService
from salesboard.services.performance_service import (
    BranchPerformance,
    PerformanceService,
)
from salesboard.services.target_service import TargetService
from salesboard.utils.validators import validate_year_month

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class LeaderboardEntry:
    rank: int
    subject_id: int
    name: str
    target: float
    achieved: float
    percent: float
    branch_id: Optional[int] = None


@dataclass
class PerformanceAlert:
    branch_id: int
    branch_name: str
    level: str
    achievement_percent: float
    projected_achievement_percent: float
    message: str


def rank_by(items: Sequence[T], key: Callable[[T], float]) -> List[tuple]:
    """
    Сортирует по убыванию ключа и нумерует с 1. Сортировка устойчивая:
    при равных значениях сохраняется входной порядок, отдельного
    вторичного ключа нет.

    Returns:
        List[tuple]: Пары (место, элемент)
    """
    ordered = sorted(items, key=key, reverse=True)
    return [(position, item) for position, item in enumerate(ordered, 1)]


def classify_alert(
    achievement_percent: float,
    projected_achievement_percent: float,
    on_track_percent: float = ALERT_ON_TRACK_PERCENT,
    warning_percent: float = ALERT_WARNING_PERCENT,
) -> AlertLevel:
    """Уровень тревоги: фактическое выполнение важнее прогноза"""
    if achievement_percent >= 100:
        return AlertLevel.EXCEEDING
    if projected_achievement_percent >= on_track_percent:
        return AlertLevel.ON_TRACK
    if projected_achievement_percent >= warning_percent:
        return AlertLevel.WARNING
    return AlertLevel.CRITICAL


ALERT_MESSAGES = {
    AlertLevel.EXCEEDING: "Филиал «{name}» перевыполнил план: {percent:.1f}%",
    AlertLevel.ON_TRACK: "Филиал «{name}» идет по плану: выполнено {percent:.1f}%, прогноз {projected:.1f}%",
    AlertLevel.WARNING: "Филиал «{name}» отстает от плана: выполнено {percent:.1f}%, прогноз {projected:.1f}%",
    AlertLevel.CRITICAL: "Филиал «{name}» в критическом отставании: выполнено {percent:.1f}%, прогноз {projected:.1f}%",
}


class LeaderboardService:
    def __init__(self, session: AsyncSession):
        self.performance_service = PerformanceService(session)
        self.target_service = TargetService(session)
        self.directory = DirectoryService(session)

    async def _month_performances(
        self, year_month: str, today: Optional[datetime.date] = None
    ) -> List[BranchPerformance]:
        year_month = validate_year_month(year_month)
        targets = await self.target_service.list_month_targets(
            year_month, effective_only=True
        )
        return [
            await self.performance_service.get_branch_performance(
                target.branch_id, year_month, today=today
            )
            for target in targets
        ]

    async def branch_leaderboard(
        self, year_month: str, today: Optional[datetime.date] = None
    ) -> List[LeaderboardEntry]:
        """Рейтинг филиалов по проценту выполнения плана за месяц"""
        performances = await self._month_performances(year_month, today)
        return await self._branch_entries(
            rank_by(performances, key=lambda p: p.achievement_percent)
        )

    async def branch_competition(
        self, year_month: str, today: Optional[datetime.date] = None
    ) -> List[LeaderboardEntry]:
        """Соревнование филиалов по сумме продаж за месяц"""
        performances = await self._month_performances(year_month, today)
        return await self._branch_entries(
            rank_by(performances, key=lambda p: p.achieved_amount)
        )

    async def cashier_leaderboard(
        self,
        date_from: Union[str, datetime.date],
        date_to: Union[str, datetime.date],
        branch_id: Optional[int] = None,
    ) -> List[LeaderboardEntry]:
        """Рейтинг кассиров по выполнению своей доли дневных планов"""
        cashiers = await self.performance_service.get_cashier_performance(
            date_from, date_to, branch_id=branch_id
        )
        names = await self.directory.cashier_names()
        return [
            LeaderboardEntry(
                rank=rank,
                subject_id=item.cashier_id,
                name=names.get(item.cashier_id, f"Кассир ID:{item.cashier_id}"),
                target=item.target_share,
                achieved=item.total_sales,
                percent=item.achievement_percent,
                branch_id=item.branch_id,
            )
            for rank, item in rank_by(cashiers, key=lambda c: c.achievement_percent)
        ]

    async def alerts(
        self, year_month: str, today: Optional[datetime.date] = None
    ) -> List[PerformanceAlert]:
        """
        Тревоги по филиалам с действующим планом. Считаются заново при каждом
        запросе и нигде не сохраняются.
        """
        performances = await self._month_performances(year_month, today)
        names = await self.directory.branch_names()

        result = []
        for performance in performances:
            level = classify_alert(
                performance.achievement_percent,
                performance.projected_achievement_percent,
            )
            name = names.get(performance.branch_id, f"Филиал ID:{performance.branch_id}")
            result.append(
                PerformanceAlert(
                    branch_id=performance.branch_id,
                    branch_name=name,
                    level=level.value,
                    achievement_percent=round(performance.achievement_percent, 2),
                    projected_achievement_percent=round(
                        performance.projected_achievement_percent, 2
                    ),
                    message=ALERT_MESSAGES[level].format(
                        name=name,
                        percent=performance.achievement_percent,
                        projected=performance.projected_achievement_percent,
                    ),
                )
            )
            if level in (AlertLevel.WARNING, AlertLevel.CRITICAL):
                logger.warning(result[-1].message)
        return result

    async def _branch_entries(self, ranked: List[tuple]) -> List[LeaderboardEntry]:
        names = await self.directory.branch_names()
        return [
            LeaderboardEntry(
                rank=rank,
                subject_id=performance.branch_id,
                name=names.get(performance.branch_id, f"Филиал ID:{performance.branch_id}"),
                target=performance.target_amount,
                achieved=performance.achieved_amount,
                percent=round(performance.achievement_percent, 2),
                branch_id=performance.branch_id,
            )
            for rank, performance in ranked
        ]
