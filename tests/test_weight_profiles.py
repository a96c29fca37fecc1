import pytest
from salesboard.core.exceptions import NoProfileError, NotFoundError, ValidationError
from salesboard.models.monthly_target import MonthlyTarget
from salesboard.services.weight_profile_service import WeightProfileService


@pytest.mark.asyncio
async def test_create_profile_stores_weights_in_order(session):
    service = WeightProfileService(session)

    profile = await service.create_profile(
        "Будни", [10, 20, 30, 40, 50, 60, 70], description="Тест"
    )

    assert profile.weights == [10, 20, 30, 40, 50, 60, 70]
    assert profile.sunday_weight == 10
    assert profile.saturday_weight == 70
    assert not profile.is_default


@pytest.mark.asyncio
async def test_model_defaults_weight_thursday_friday(session):
    service = WeightProfileService(session)
    profile = await service.repo.create(name="Стандарт")

    assert profile.weights == [100, 100, 100, 100, 130, 130, 100]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "weights",
    [
        [1, 1, 1],
        [1, 1, 1, 1, 1, 1, -1],
        [1, 1, 1, 1, 1, 1, "x"],
        ["inf", 1, 1, 1, 1, 1, 1],
        [1, 1, 1, float("nan"), 1, 1, 1],
    ],
)
async def test_create_profile_invalid_weights(session, weights):
    with pytest.raises(ValidationError):
        await WeightProfileService(session).create_profile("Плохой", weights)


@pytest.mark.asyncio
async def test_create_profile_empty_name(session):
    with pytest.raises(ValidationError):
        await WeightProfileService(session).create_profile("  ", [1] * 7)


@pytest.mark.asyncio
async def test_single_default_profile(session):
    service = WeightProfileService(session)
    first = await service.create_profile("Первый", [1] * 7, is_default=True)
    second = await service.create_profile("Второй", [2] * 7, is_default=True)

    await session.refresh(first)
    await session.refresh(second)
    assert not first.is_default
    assert second.is_default

    profiles = await service.list_profiles()
    assert sum(1 for p in profiles if p.is_default) == 1
    assert (await service.get_default_profile()).id == second.id

    await service.set_default_profile(first.id)
    profiles = await service.list_profiles()
    for profile in profiles:
        await session.refresh(profile)
    assert [p.id for p in profiles if p.is_default] == [first.id]


@pytest.mark.asyncio
async def test_inactive_profile_cannot_be_default(session):
    service = WeightProfileService(session)
    profile = await service.create_profile("Старый", [1] * 7)
    await service.deactivate_profile(profile.id)

    with pytest.raises(ValidationError):
        await service.set_default_profile(profile.id)


@pytest.mark.asyncio
async def test_update_weights(session):
    service = WeightProfileService(session)
    profile = await service.create_profile("Меняем", [1] * 7)

    updated = await service.update_weights(profile.id, [0, 1, 1, 1, 1, 3, 3])
    assert updated.weights == [0, 1, 1, 1, 1, 3, 3]

    with pytest.raises(NotFoundError):
        await service.update_weights(999, [1] * 7)


@pytest.mark.asyncio
async def test_resolve_profile_prefers_explicit(session, flat_profile):
    service = WeightProfileService(session)
    explicit = await service.create_profile("Явный", [5] * 7)

    target = MonthlyTarget(id=1, branch_id=1, year_month="2025-02", profile_id=explicit.id)
    assert (await service.resolve_profile(target)).id == explicit.id

    target.profile_id = None
    assert (await service.resolve_profile(target)).id == flat_profile.id


@pytest.mark.asyncio
async def test_resolve_profile_falls_back_from_inactive(session, flat_profile):
    service = WeightProfileService(session)
    explicit = await service.create_profile("Отключенный", [5] * 7)
    await service.deactivate_profile(explicit.id)

    target = MonthlyTarget(id=1, branch_id=1, year_month="2025-02", profile_id=explicit.id)
    assert (await service.resolve_profile(target)).id == flat_profile.id


@pytest.mark.asyncio
async def test_resolve_profile_without_default(session):
    target = MonthlyTarget(id=1, branch_id=1, year_month="2025-02", profile_id=None)
    with pytest.raises(NoProfileError):
        await WeightProfileService(session).resolve_profile(target)
