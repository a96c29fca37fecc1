import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Добавляем корень проекта в PYTHONPATH
sys.path.append(str(Path(__file__).resolve().parent.parent))

from salesboard.core.config import LOG_LEVEL
from salesboard.core.database import engine, get_session, Base
from salesboard.core.exceptions import SalesTargetError
import salesboard.models  # noqa: F401  регистрация моделей в metadata
from salesboard.services.allocation_service import AllocationService
from salesboard.services.leaderboard_service import LeaderboardService
from salesboard.services.report_service import ReportService
from salesboard.services.snapshot_service import SnapshotService

logger = logging.getLogger("salesboard")


async def on_startup():
    # Создаем таблицы в БД
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def run_command(args: argparse.Namespace) -> None:
    await on_startup()
    if args.command == "init-db":
        logger.info("Схема БД создана")
        return

    async with get_session() as session:
        if args.command == "generate":
            allocations = await AllocationService(session).generate_allocations(
                args.target_id, preserve_overrides=args.preserve_overrides
            )
            logger.info(f"Дней в распределении: {len(allocations)}")
        elif args.command == "refresh-snapshots":
            snapshots = await SnapshotService(session).refresh_range(
                args.branch_id, args.date_from, args.date_to
            )
            logger.info(f"Пересчитано снимков: {len(snapshots)}")
        elif args.command == "alerts":
            for alert in await LeaderboardService(session).alerts(args.year_month):
                print(f"[{alert.level}] {alert.message}")
        elif args.command == "export":
            report = await ReportService(session).export_month_report(args.year_month)
            Path(args.output).write_bytes(report)
            logger.info(f"Отчет сохранен в {args.output}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="salesboard", description="Планы продаж филиалов и мотивация"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Создать таблицы")

    generate = commands.add_parser("generate", help="Распределить месячный план по дням")
    generate.add_argument("target_id", type=int)
    generate.add_argument(
        "--preserve-overrides",
        action="store_true",
        default=None,
        help="Сохранить ручные корректировки дней",
    )

    refresh = commands.add_parser("refresh-snapshots", help="Пересчитать снимки продаж")
    refresh.add_argument("branch_id", type=int)
    refresh.add_argument("date_from")
    refresh.add_argument("date_to")

    alerts = commands.add_parser("alerts", help="Тревоги по выполнению плана")
    alerts.add_argument("year_month")

    export = commands.add_parser("export", help="Выгрузить месячный отчет в Excel")
    export.add_argument("year_month")
    export.add_argument("output")

    return parser


def main(argv=None) -> int:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(run_command(args))
    except SalesTargetError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
