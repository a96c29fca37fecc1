import datetime
import io
import pytest
from openpyxl import load_workbook
from salesboard.services.allocation_service import AllocationService
from salesboard.services.incentive_service import IncentiveService
from salesboard.services.report_service import LEADERBOARD_COLUMNS, ReportService
from salesboard.services.target_service import TargetService


@pytest.mark.asyncio
async def test_month_report_sheets(session, branch, cashiers, flat_profile, add_journal):
    target = await TargetService(session).create_target(branch.id, "2025-02", 28000)
    await AllocationService(session).generate_allocations(target.id)
    await add_journal(branch.id, cashiers[0].id, datetime.date(2025, 2, 1), 30000)
    await IncentiveService(session).create_tier("План", 100, "fixed", fixed_amount=500)
    await IncentiveService(session).calculate_branch_incentives("2025-02")

    content = await ReportService(session).export_month_report(
        "2025-02", today=datetime.date(2025, 2, 28)
    )
    workbook = load_workbook(io.BytesIO(content))

    assert workbook.sheetnames == ["Leaderboard", "Daily", "Alerts", "Incentives"]

    leaderboard = list(workbook["Leaderboard"].iter_rows(values_only=True))
    assert list(leaderboard[0]) == LEADERBOARD_COLUMNS
    assert leaderboard[1][0] == 1
    assert leaderboard[1][1] == "Центральный"

    daily = list(workbook["Daily"].iter_rows(values_only=True))
    assert len(daily) == 1 + 28

    alerts = list(workbook["Alerts"].iter_rows(values_only=True))
    assert alerts[1][1] == "exceeding"

    incentives = list(workbook["Incentives"].iter_rows(values_only=True))
    assert incentives[1][-1] == "pending"
    assert incentives[1][-2] == 500


@pytest.mark.asyncio
async def test_empty_month_report(session):
    content = await ReportService(session).export_month_report("2030-01")
    workbook = load_workbook(io.BytesIO(content))

    assert workbook.sheetnames == ["Leaderboard", "Daily", "Alerts", "Incentives"]
    rows = list(workbook["Leaderboard"].iter_rows(values_only=True))
    assert len(rows) == 1
