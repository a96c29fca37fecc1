import datetime
import pytest
import pytest_asyncio
from salesboard.services.allocation_service import AllocationService
from salesboard.services.performance_service import PerformanceService
from salesboard.services.target_service import TargetService


@pytest_asyncio.fixture
async def february(session, branch, cashiers, flat_profile, add_journal):
    """План 28000 на февраль 2025 (по 1000 в день) и несколько журналов"""
    target = await TargetService(session).create_target(branch.id, "2025-02", 28000)
    await AllocationService(session).generate_allocations(target.id)

    anna, oleg = cashiers
    await add_journal(branch.id, anna.id, datetime.date(2025, 2, 1), 1200)
    await add_journal(branch.id, anna.id, datetime.date(2025, 2, 1), 5000, status="draft")
    await add_journal(
        branch.id, oleg.id, datetime.date(2025, 2, 2), 800,
        status="approved", shift_type="evening", transaction_count=20,
    )
    await add_journal(branch.id, anna.id, datetime.date(2025, 2, 3), 500)
    await add_journal(
        branch.id, oleg.id, datetime.date(2025, 2, 3), 500, shift_type="night",
        transaction_count=5,
    )
    return target


@pytest.mark.asyncio
async def test_branch_performance_with_projection(session, branch, february):
    result = await PerformanceService(session).get_branch_performance(
        branch.id, "2025-02", today=datetime.date(2025, 2, 10)
    )

    assert result.target_id == february.id
    assert result.allocation_version == 1
    assert result.target_amount == pytest.approx(28000)
    assert result.achieved_amount == pytest.approx(3000)
    assert result.achievement_percent == pytest.approx(3000 / 28000 * 100)
    assert result.days_in_month == 28
    assert result.days_passed == 10
    assert result.average_daily_sales == pytest.approx(300)
    assert result.projected_total == pytest.approx(8400)
    assert result.projected_achievement_percent == pytest.approx(30)
    assert result.remaining_amount == pytest.approx(25000)
    assert result.required_daily_average == pytest.approx(25000 / 18)
    assert len(result.journal_ids) == 4


@pytest.mark.asyncio
async def test_branch_performance_daily_breakdown(session, branch, february):
    result = await PerformanceService(session).get_branch_performance(
        branch.id, "2025-02", today=datetime.date(2025, 2, 10)
    )

    assert len(result.daily) == 28
    first, second, third = result.daily[:3]
    assert first.target == pytest.approx(1000)
    assert first.achieved == pytest.approx(1200)
    assert first.percent == pytest.approx(120)
    assert second.achieved == pytest.approx(800)
    assert third.cumulative_achieved == pytest.approx(3000)
    assert third.cumulative_target == pytest.approx(3000)
    assert result.daily[-1].cumulative_target == pytest.approx(28000)


@pytest.mark.asyncio
async def test_branch_performance_without_target_is_zero(session, branch):
    result = await PerformanceService(session).get_branch_performance(
        branch.id, "2025-04", today=datetime.date(2025, 4, 5)
    )

    assert result.target_id is None
    assert result.target_amount == 0
    assert result.achieved_amount == 0
    assert result.achievement_percent == 0
    assert result.daily == []


@pytest.mark.asyncio
async def test_draft_target_is_not_effective(session, branch, flat_profile):
    await TargetService(session).create_target(branch.id, "2025-05", 10000)

    result = await PerformanceService(session).get_branch_performance(
        branch.id, "2025-05", today=datetime.date(2025, 5, 5)
    )
    assert result.target_amount == 0


@pytest.mark.asyncio
async def test_projection_before_month_start(session, branch, february):
    result = await PerformanceService(session).get_branch_performance(
        branch.id, "2025-02", today=datetime.date(2025, 1, 20)
    )

    assert result.days_passed == 0
    assert result.average_daily_sales == 0
    assert result.projected_total == 0
    assert result.required_daily_average == pytest.approx(25000 / 28)


@pytest.mark.asyncio
async def test_projection_after_month_end(session, branch, february):
    result = await PerformanceService(session).get_branch_performance(
        branch.id, "2025-02", today=datetime.date(2025, 3, 15)
    )

    assert result.days_passed == 28
    assert result.projected_total == pytest.approx(3000)
    assert result.required_daily_average == 0


@pytest.mark.asyncio
async def test_targets_vs_actuals(session, branch, february):
    rows = await PerformanceService(session).get_targets_vs_actuals(
        "2025-02-01", "2025-02-03"
    )

    assert [row["date"] for row in rows] == [
        datetime.date(2025, 2, 1),
        datetime.date(2025, 2, 2),
        datetime.date(2025, 2, 3),
    ]
    assert rows[0]["target"] == pytest.approx(1000)
    assert rows[0]["achieved"] == pytest.approx(1200)
    assert rows[0]["difference"] == pytest.approx(200)
    assert rows[1]["percent"] == pytest.approx(80)


@pytest.mark.asyncio
async def test_shift_breakdown(session, branch, february):
    breakdown = await PerformanceService(session).get_shift_breakdown(
        datetime.date(2025, 2, 1), datetime.date(2025, 2, 28), branch_id=branch.id
    )
    by_shift = {item.shift_type: item for item in breakdown}

    assert by_shift["morning"].total_sales == pytest.approx(1700)
    assert by_shift["morning"].journals_count == 2
    assert by_shift["evening"].total_sales == pytest.approx(800)
    assert by_shift["evening"].average_ticket == pytest.approx(40)
    assert by_shift["night"].transactions_count == 5


@pytest.mark.asyncio
async def test_shift_breakdown_against_shift_targets(
    session, branch, cashiers, flat_profile, add_journal
):
    target = await TargetService(session).create_target(branch.id, "2025-03", 31000)
    await AllocationService(
        session, shift_weights="morning:50,evening:30,night:20"
    ).generate_allocations(target.id)
    await add_journal(branch.id, cashiers[0].id, datetime.date(2025, 3, 3), 1000)
    await add_journal(
        branch.id, cashiers[1].id, datetime.date(2025, 3, 3), 450, shift_type="evening"
    )

    breakdown = await PerformanceService(session).get_shift_breakdown(
        "2025-03-01", "2025-03-10", branch_id=branch.id
    )
    by_shift = {item.shift_type: item for item in breakdown}

    # 1000 в день: утро 500, вечер 300, ночь 200
    assert by_shift["morning"].target_amount == pytest.approx(5000)
    assert by_shift["morning"].achievement_percent == pytest.approx(20)
    assert by_shift["evening"].target_amount == pytest.approx(3000)
    assert by_shift["evening"].achievement_percent == pytest.approx(15)
    assert by_shift["night"].target_amount == pytest.approx(2000)
    assert by_shift["night"].achievement_percent == 0


@pytest.mark.asyncio
async def test_cashier_performance_target_share(session, branch, cashiers, february):
    anna, oleg = cashiers
    result = await PerformanceService(session).get_cashier_performance(
        datetime.date(2025, 2, 1), datetime.date(2025, 2, 28)
    )
    by_id = {item.cashier_id: item for item in result}

    # Анна: 1 февраля одна (1000) + 3 февраля пополам (500)
    assert by_id[anna.id].target_share == pytest.approx(1500)
    assert by_id[anna.id].total_sales == pytest.approx(1700)
    assert by_id[anna.id].days_worked == 2
    assert by_id[oleg.id].target_share == pytest.approx(1500)
    assert by_id[oleg.id].achievement_percent == pytest.approx(1300 / 1500 * 100)
    assert by_id[oleg.id].branch_id == branch.id
