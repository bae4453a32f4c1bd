# tests/conftest.py

import os
from typing import AsyncGenerator, Awaitable, Callable, Dict, List, Optional, Tuple

# Tests run against an in-memory SQLite database; this must be set before
# anything under `app` reads its settings.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from app.main import app as main_app
from app.core import dependencies as deps
from app.core.database import create_db_and_tables, engine_options, get_session

# --- Every model has to be imported before create_all() ---
from app.domains.models import *  # noqa: F401, F403

from app.domains.usr import models as usr_models
from app.domains.inv import crud as inv_crud, ledger
from app.domains.inv import models as inv_models
from app.domains.prj import models as prj_models
from app.domains.tpl import models as tpl_models

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# =============================================================================
# Database / session
# =============================================================================
@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """A fresh in-memory database per test."""
    test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, **engine_options(TEST_DATABASE_URL))
    await create_db_and_tables(bind=test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with TestingSessionLocal() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient bound to the app, with every request using the test session.
    """

    def override_get_session_and_dependency():
        yield db_session

    original_overrides = main_app.dependency_overrides.copy()
    try:
        main_app.dependency_overrides[get_session] = override_get_session_and_dependency
        main_app.dependency_overrides[deps.get_db_session] = override_get_session_and_dependency

        async with AsyncClient(transport=ASGITransport(app=main_app), base_url="http://test") as async_client:
            yield async_client
    finally:
        main_app.dependency_overrides.clear()
        main_app.dependency_overrides.update(original_overrides)


# =============================================================================
# Factories
# =============================================================================
@pytest_asyncio.fixture(scope="function")
def user_factory(db_session: AsyncSession) -> Callable[..., Awaitable[usr_models.AppUser]]:
    async def _create_user(name: str) -> usr_models.AppUser:
        user = usr_models.AppUser(name=name)
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest_asyncio.fixture(scope="function")
def category_factory(db_session: AsyncSession) -> Callable[..., Awaitable[inv_models.Category]]:
    async def _create_category(name: str = "Fasteners") -> inv_models.Category:
        category = inv_models.Category(name=name)
        db_session.add(category)
        await db_session.commit()
        await db_session.refresh(category)
        return category

    return _create_category


@pytest_asyncio.fixture(scope="function")
def part_factory(
    db_session: AsyncSession, category_factory: Callable
) -> Callable[..., Awaitable[inv_models.Part]]:
    """
    Creates a part. With `stock` > 0 a `receive` activity is logged, so the
    part starts with that many units on hand and available.
    """
    async def _create_part(
        name: str,
        sku: str,
        stock: int = 0,
        category: Optional[inv_models.Category] = None,
    ) -> inv_models.Part:
        if category is None:
            category = await category_factory(f"{name} category")
        part = inv_models.Part(name=name, sku=sku, category_id=category.id)
        db_session.add(part)
        await db_session.flush()
        await ledger.append_activity(
            db_session,
            inv_models.Activity(
                event_type=inv_models.ActivityEventType.CREATE_PART.value,
                part_id=part.id,
                qty=0,
                actor_name="fixture",
                category_name=category.name,
            ),
        )
        if stock:
            await ledger.append_activity(
                db_session,
                inv_models.Activity(
                    event_type=inv_models.ActivityEventType.RECEIVE.value,
                    part_id=part.id,
                    qty=stock,
                    actor_name="fixture",
                    counterparty_name="Fixture Supplier",
                    category_name=category.name,
                ),
            )
        await db_session.commit()
        await db_session.refresh(part)
        return part

    return _create_part


@pytest_asyncio.fixture(scope="function")
def project_factory(db_session: AsyncSession) -> Callable[..., Awaitable[prj_models.Project]]:
    async def _create_project(name: str = "Pump Station Retrofit") -> prj_models.Project:
        project = prj_models.Project(name=name)
        db_session.add(project)
        await db_session.commit()
        await db_session.refresh(project)
        return project

    return _create_project


@pytest_asyncio.fixture(scope="function")
def product_factory(db_session: AsyncSession) -> Callable[..., Awaitable[prj_models.Product]]:
    async def _create_product(project: prj_models.Project, name: str = "Control Cabinet") -> prj_models.Product:
        product = prj_models.Product(project_id=project.id, name=name)
        db_session.add(product)
        await db_session.commit()
        await db_session.refresh(product)
        return product

    return _create_product


@pytest_asyncio.fixture(scope="function")
def template_factory(db_session: AsyncSession) -> Callable[..., Awaitable[tpl_models.ProductTemplate]]:
    async def _create_template(
        name: str, lines: List[Tuple[int, int]]
    ) -> tpl_models.ProductTemplate:
        template = tpl_models.ProductTemplate(name=name)
        template.parts = [tpl_models.TemplatePart(part_id=part_id, quantity=qty) for part_id, qty in lines]
        db_session.add(template)
        await db_session.commit()
        await db_session.refresh(template)
        return template

    return _create_template


@pytest_asyncio.fixture(scope="function")
def balance_of(db_session: AsyncSession) -> Callable[[int], Awaitable[Dict[str, int]]]:
    """Reads a part's stored balance as a plain dict (fresh from the database)."""

    async def _balance_of(part_id: int) -> Dict[str, int]:
        balance = await inv_crud.balance.get(db_session, part_id=part_id)
        if balance is None:
            return {"on_hand": 0, "allocated": 0, "available": 0}
        return {"on_hand": balance.on_hand, "allocated": balance.allocated, "available": balance.available}

    return _balance_of
