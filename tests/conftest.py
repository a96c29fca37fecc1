import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, patch
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
import sys
from pathlib import Path


sys.path.append(str(Path(__file__).resolve().parent.parent))

from salesboard.core.database import Base
import salesboard.models  # noqa: F401
from salesboard.models.branch import Branch
from salesboard.models.sales_journal import CashierSalesJournal
from salesboard.models.user import User
from salesboard.models.weight_profile import WeightProfile


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, future=True
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    async_session = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    async with async_session() as session:
        yield session


@pytest.fixture(autouse=True)
def redis_mock():
    """Redis в тестах не нужен: каждое чтение кэша - промах"""
    mock = AsyncMock()
    mock.get.return_value = None
    mock.keys.return_value = []
    with patch("salesboard.utils.cache.redis_client", mock):
        yield mock


@pytest_asyncio.fixture
async def branch(session):
    branch = Branch(name="Центральный")
    session.add(branch)
    await session.commit()
    await session.refresh(branch)
    return branch


@pytest_asyncio.fixture
async def other_branch(session):
    branch = Branch(name="Северный")
    session.add(branch)
    await session.commit()
    await session.refresh(branch)
    return branch


@pytest_asyncio.fixture
async def cashiers(session, branch):
    users = [
        User(first_name="Анна", last_name="Иванова", role="cashier", branch_id=branch.id),
        User(first_name="Олег", last_name="Петров", role="cashier", branch_id=branch.id),
    ]
    session.add_all(users)
    await session.commit()
    for user in users:
        await session.refresh(user)
    return users


@pytest_asyncio.fixture
async def flat_profile(session):
    """Профиль по умолчанию с одинаковыми весами всех дней"""
    profile = WeightProfile(
        name="Ровный",
        is_default=True,
        sunday_weight=1,
        monday_weight=1,
        tuesday_weight=1,
        wednesday_weight=1,
        thursday_weight=1,
        friday_weight=1,
        saturday_weight=1,
    )
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile


@pytest.fixture
def add_journal(session):
    """Добавляет кассовый журнал смены (по умолчанию проведенный)"""

    async def _add(
        branch_id,
        cashier_id,
        journal_date,
        total_sales,
        status="posted",
        shift_type="morning",
        transaction_count=10,
    ):
        journal = CashierSalesJournal(
            branch_id=branch_id,
            cashier_id=cashier_id,
            journal_date=journal_date,
            shift_type=shift_type,
            total_sales=total_sales,
            transaction_count=transaction_count,
            status=status,
        )
        session.add(journal)
        await session.commit()
        await session.refresh(journal)
        return journal

    return _add
