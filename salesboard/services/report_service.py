import datetime
import io
import logging
from typing import Optional
import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession
from salesboard.services.directory_service import DirectoryService
from salesboard.services.incentive_service import IncentiveService
from salesboard.services.leaderboard_service import LeaderboardService
from salesboard.services.performance_service import PerformanceService
from salesboard.utils.date_utils import get_month_range
from salesboard.utils.validators import validate_year_month

logger = logging.getLogger(__name__)

LEADERBOARD_COLUMNS = ["Место", "Филиал", "План", "Факт", "% выполнения"]
DAILY_COLUMNS = ["Филиал", "Дата", "План", "Факт", "Отклонение", "% выполнения"]
ALERT_COLUMNS = ["Филиал", "Уровень", "% выполнения", "Прогноз, %", "Сообщение"]
INCENTIVE_COLUMNS = [
    "Филиал",
    "Кассир",
    "План",
    "Факт",
    "% выполнения",
    "Уровень",
    "Начислено",
    "К выплате",
    "Статус",
]


class ReportService:
    def __init__(self, session: AsyncSession):
        self.leaderboard_service = LeaderboardService(session)
        self.performance_service = PerformanceService(session)
        self.incentive_service = IncentiveService(session)
        self.directory = DirectoryService(session)

    async def export_month_report(
        self, year_month: str, today: Optional[datetime.date] = None
    ) -> bytes:
        """
        Экспортирует месячный отчет по планам в Excel.

        Листы: Leaderboard (рейтинг филиалов), Daily (план/факт по дням),
        Alerts (тревоги), Incentives (начисленные награды). Пустые данные
        дают листы только с заголовками.

        Returns:
            bytes: Содержимое xlsx-файла
        """
        year_month = validate_year_month(year_month)
        first_day, last_day = get_month_range(year_month)
        branch_names = await self.directory.branch_names()
        cashier_names = await self.directory.cashier_names()

        leaderboard = await self.leaderboard_service.branch_leaderboard(year_month, today)
        leaderboard_df = pd.DataFrame(
            [
                [entry.rank, entry.name, entry.target, entry.achieved, round(entry.percent, 1)]
                for entry in leaderboard
            ],
            columns=LEADERBOARD_COLUMNS,
        )

        daily_rows = await self.performance_service.get_targets_vs_actuals(
            first_day, last_day
        )
        daily_df = pd.DataFrame(daily_rows)
        if daily_df.empty:
            daily_df = pd.DataFrame(columns=DAILY_COLUMNS)
        else:
            daily_df["branch_id"] = daily_df["branch_id"].map(
                lambda branch_id: branch_names.get(branch_id, f"Филиал ID:{branch_id}")
            )
            daily_df["percent"] = daily_df["percent"].round(1)
            daily_df = daily_df[
                ["branch_id", "date", "target", "achieved", "difference", "percent"]
            ]
            daily_df.columns = DAILY_COLUMNS
            daily_df = daily_df.sort_values(["Филиал", "Дата"])

        alerts = await self.leaderboard_service.alerts(year_month, today)
        alerts_df = pd.DataFrame(
            [
                [
                    alert.branch_name,
                    alert.level,
                    alert.achievement_percent,
                    alert.projected_achievement_percent,
                    alert.message,
                ]
                for alert in alerts
            ],
            columns=ALERT_COLUMNS,
        )

        awards = await self.incentive_service.list_awards(year_month=year_month)
        incentives_df = pd.DataFrame(
            [
                [
                    branch_names.get(award.branch_id, "") if award.branch_id else "",
                    cashier_names.get(award.cashier_id, "") if award.cashier_id else "",
                    award.target_amount,
                    award.achieved_amount,
                    award.achievement_percent,
                    award.tier_id,
                    award.calculated_reward,
                    award.final_reward,
                    award.status,
                ]
                for award in awards
            ],
            columns=INCENTIVE_COLUMNS,
        )

        excel_buffer = io.BytesIO()
        with pd.ExcelWriter(excel_buffer, engine="openpyxl") as writer:
            leaderboard_df.to_excel(writer, sheet_name="Leaderboard", index=False)
            daily_df.to_excel(writer, sheet_name="Daily", index=False)
            alerts_df.to_excel(writer, sheet_name="Alerts", index=False)
            incentives_df.to_excel(writer, sheet_name="Incentives", index=False)

        logger.info(
            f"Сформирован отчет за {year_month}: филиалов {len(leaderboard)}, "
            f"наград {len(awards)}"
        )
        return excel_buffer.getvalue()
