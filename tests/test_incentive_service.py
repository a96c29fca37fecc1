import datetime
import pytest
import pytest_asyncio
from types import SimpleNamespace
from salesboard.core.exceptions import InvalidStatusTransitionError, ValidationError
from salesboard.services.allocation_service import AllocationService
from salesboard.services.incentive_service import IncentiveService
from salesboard.services.target_service import TargetService
from salesboard.utils.rewards import (
    calculate_incentive_reward,
    match_incentive_tier,
    rounded_achievement_percent,
)


def _tier(id, min_pct, max_pct, reward_type, fixed=None, rate=None, scope="all", active=True):
    return SimpleNamespace(
        id=id,
        min_achievement_percent=min_pct,
        max_achievement_percent=max_pct,
        reward_type=reward_type,
        fixed_amount=fixed,
        percentage_rate=rate,
        applicable_to=scope,
        is_active=active,
    )


TIER_A = _tier(1, 80, 100, "percentage", rate=10)
TIER_B = _tier(2, 100, None, "fixed", fixed=500)


def test_highest_qualifying_tier_wins():
    tier = match_incentive_tier([TIER_A, TIER_B], 105, "branch")
    assert tier is TIER_B
    assert calculate_incentive_reward(tier, 10000, 10500) == 500


def test_tier_upper_bound_is_exclusive():
    assert match_incentive_tier([TIER_A, TIER_B], 100, "branch") is TIER_B
    assert match_incentive_tier([TIER_A, TIER_B], 99.99, "branch") is TIER_A
    assert match_incentive_tier([TIER_A, TIER_B], 79.99, "branch") is None


def test_overlapping_tiers_prefer_larger_min():
    wide = _tier(3, 50, None, "fixed", fixed=100)
    narrow = _tier(4, 90, 120, "fixed", fixed=300)
    assert match_incentive_tier([wide, narrow], 95, "cashier") is narrow
    assert match_incentive_tier([wide, narrow], 130, "cashier") is wide


def test_tier_scope_and_activity_filter():
    branch_only = _tier(5, 0, None, "fixed", fixed=10, scope="branch")
    inactive = _tier(6, 0, None, "fixed", fixed=20, active=False)
    assert match_incentive_tier([branch_only, inactive], 50, "cashier") is None
    assert match_incentive_tier([branch_only, inactive], 50, "branch") is branch_only


def test_percentage_reward_only_on_excess():
    assert calculate_incentive_reward(TIER_A, 10000, 9000) == 0
    assert calculate_incentive_reward(TIER_A, 10000, 11234.56) == pytest.approx(123.46)


def test_both_reward_combines_fixed_and_excess():
    tier = _tier(7, 100, None, "both", fixed=300, rate=5)
    assert calculate_incentive_reward(tier, 10000, 12000) == pytest.approx(400)
    assert calculate_incentive_reward(tier, 10000, 10000) == pytest.approx(300)


@pytest.mark.parametrize(
    "achieved, target, boundary",
    [(11500, 10000, 115), (5700, 10000, 57), (29, 100, 29), (1150.5, 1000.0, 115.05)],
)
def test_amount_exactly_at_tier_minimum_selects_tier(achieved, target, boundary):
    lower = _tier(9, 0, boundary, "fixed", fixed=1)
    upper = _tier(10, boundary, None, "fixed", fixed=2)
    percent = rounded_achievement_percent(achieved, target)
    assert percent == boundary
    assert match_incentive_tier([lower, upper], percent, "branch") is upper


@pytest_asyncio.fixture
async def tiers(session):
    service = IncentiveService(session)
    tier_a = await service.create_tier(
        "Почти план", 80, "percentage", max_achievement_percent=100, percentage_rate=10
    )
    tier_b = await service.create_tier("План выполнен", 100, "fixed", fixed_amount=500)
    return tier_a, tier_b


@pytest_asyncio.fixture
async def february_10k(session, branch, cashiers, flat_profile, add_journal):
    target = await TargetService(session).create_target(branch.id, "2025-02", 10000)
    await AllocationService(session).generate_allocations(target.id)
    await add_journal(branch.id, cashiers[0].id, datetime.date(2025, 2, 3), 6000)
    await add_journal(branch.id, cashiers[1].id, datetime.date(2025, 2, 4), 4500)
    return target


@pytest.mark.asyncio
async def test_create_tier_validation(session):
    service = IncentiveService(session)
    with pytest.raises(ValidationError):
        await service.create_tier("Без суммы", 100, "fixed")
    with pytest.raises(ValidationError):
        await service.create_tier("Без процента", 100, "both", fixed_amount=10)
    with pytest.raises(ValidationError):
        await service.create_tier("Неизвестный", 100, "bonus", fixed_amount=10)
    with pytest.raises(ValidationError):
        await service.create_tier(
            "Пустой диапазон", 100, "fixed", max_achievement_percent=90, fixed_amount=1
        )


@pytest.mark.asyncio
async def test_branch_award_uses_highest_tier(session, branch, tiers, february_10k):
    tier_a, tier_b = tiers
    awards = await IncentiveService(session).calculate_branch_incentives(
        "2025-02", today=datetime.date(2025, 2, 28)
    )

    assert len(awards) == 1
    award = awards[0]
    assert award.branch_id == branch.id
    assert award.cashier_id is None
    assert award.tier_id == tier_b.id
    assert award.achievement_percent == pytest.approx(105)
    assert award.calculated_reward == pytest.approx(500)
    assert award.final_reward == pytest.approx(500)
    assert award.status == "pending"
    assert award.period_start == datetime.date(2025, 2, 1)
    assert award.period_end == datetime.date(2025, 2, 28)
    assert len(award.journal_ids) == 2


@pytest.mark.asyncio
async def test_recalculation_replaces_pending_award(session, tiers, february_10k):
    service = IncentiveService(session)
    await service.calculate_branch_incentives("2025-02")
    await service.calculate_branch_incentives("2025-02")

    awards = await service.list_awards(year_month="2025-02")
    assert len(awards) == 1


@pytest.mark.asyncio
async def test_award_lifecycle(session, cashiers, tiers, february_10k):
    service = IncentiveService(session)
    award = (await service.calculate_branch_incentives("2025-02"))[0]

    adjusted = await service.adjust_award(award.id, 450, notes="Списание брака")
    assert adjusted.adjusted_reward == pytest.approx(450)
    assert adjusted.final_reward == pytest.approx(450)
    assert adjusted.calculated_reward == pytest.approx(500)

    with pytest.raises(InvalidStatusTransitionError):
        await service.pay_award(award.id)

    approved = await service.approve_award(award.id, approver_id=cashiers[0].id)
    assert approved.status == "approved"
    assert approved.approved_by == cashiers[0].id
    assert approved.approved_at is not None

    with pytest.raises(InvalidStatusTransitionError):
        await service.approve_award(award.id, approver_id=cashiers[0].id)
    with pytest.raises(InvalidStatusTransitionError):
        await service.adjust_award(award.id, 1)

    # утвержденная награда при пересчете не трогается
    assert await service.calculate_branch_incentives("2025-02") == []

    paid = await service.pay_award(award.id)
    assert paid.status == "paid"
    assert paid.paid_at is not None
    assert paid.final_reward == pytest.approx(450)

    assert [a.id for a in await service.list_awards(status="paid")] == [award.id]


@pytest.mark.asyncio
async def test_no_award_below_lowest_tier(session, branch, cashiers, tiers, flat_profile, add_journal):
    target = await TargetService(session).create_target(branch.id, "2025-03", 10000)
    await AllocationService(session).generate_allocations(target.id)
    await add_journal(branch.id, cashiers[0].id, datetime.date(2025, 3, 3), 5000)

    assert await IncentiveService(session).calculate_branch_incentives("2025-03") == []


@pytest.mark.asyncio
async def test_cashier_awards(session, cashiers, february_10k):
    service = IncentiveService(session)
    await service.create_tier(
        "Кассир-лидер", 100, "fixed", fixed_amount=150, applicable_to="cashier"
    )
    await service.create_tier(
        "Только филиалы", 0, "fixed", fixed_amount=999, applicable_to="branch"
    )

    awards = await service.calculate_cashier_incentives("2025-02")
    by_cashier = {award.cashier_id: award for award in awards}

    # каждый кассир работал один день один: доля плана = дневной план
    daily = 10000 / 28
    anna, oleg = cashiers
    assert by_cashier[anna.id].target_amount == pytest.approx(daily, abs=0.01)
    assert by_cashier[anna.id].final_reward == pytest.approx(150)
    assert by_cashier[oleg.id].final_reward == pytest.approx(150)


@pytest.mark.asyncio
async def test_match_tier_and_deactivate(session, tiers):
    service = IncentiveService(session)
    tier_a, tier_b = tiers

    assert (await service.match_tier(100, "branch")).id == tier_b.id
    await service.deactivate_tier(tier_b.id)
    assert await service.match_tier(100, "branch") is None
    assert [t.id for t in await service.list_tiers()] == [tier_a.id]


@pytest.mark.asyncio
async def test_award_at_tier_minimum_keeps_that_tier(session, branch, cashiers, flat_profile, add_journal):
    service = IncentiveService(session)
    await service.create_tier("Обычный", 100, "fixed", max_achievement_percent=115, fixed_amount=300)
    top = await service.create_tier("Сверхплан", 115, "fixed", fixed_amount=800)
    target = await TargetService(session).create_target(branch.id, "2025-04", 10000)
    await AllocationService(session).generate_allocations(target.id)
    await add_journal(branch.id, cashiers[0].id, datetime.date(2025, 4, 7), 11500)

    award = (await service.calculate_branch_incentives("2025-04"))[0]

    assert award.achievement_percent == 115
    assert award.tier_id == top.id
    assert award.final_reward == pytest.approx(800)
