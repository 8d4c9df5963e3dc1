"""Two writers editing the same diagram over HTTP."""
import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from classboard.database import Base, get_db
from classboard.schemas.user import UserCreate
from classboard.services.diagram_service import DiagramService
from classboard.services.user_service import UserService

ORIGIN = {"x": 0, "y": 0}


@pytest.fixture
async def session_factory(tmp_path):
    # File database so the request and the competing writer use separate connections
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'edits.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def client(session_factory):
    from classboard.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
async def seeded(session_factory):
    async with session_factory() as session:
        owner = await UserService(session).create_user(
            UserCreate(name="Owner", email="owner@example.com", password="secret123")
        )
        await session.commit()
        diagram = await DiagramService(session).create("Race", owner)
    return owner, diagram


async def test_edit_loses_to_concurrent_writer(client, session_factory, seeded, auth_headers, monkeypatch):
    owner, diagram = seeded
    load = DiagramService.resolve_with_access
    raced = False

    async def load_then_race(self, diagram_id, user_id):
        # Another writer saves after this request has read the diagram
        nonlocal raced
        loaded = await load(self, diagram_id, user_id)
        if not raced:
            raced = True
            async with session_factory() as other:
                await DiagramService(other).add_class(diagram_id, "c9", {"name": "Bike", "position": ORIGIN}, user_id)
        return loaded

    monkeypatch.setattr(DiagramService, "resolve_with_access", load_then_race)

    response = await client.post(
        f"/api/diagrams/{diagram.id}/classes/c1",
        json={"name": "Car", "position": ORIGIN},
        headers=auth_headers(owner),
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "DIAG_004"

    monkeypatch.undo()
    stored = await client.get(f"/api/diagrams/{diagram.id}", headers=auth_headers(owner))
    assert stored.json()["revision"] == 2
    assert list(stored.json()["content"]["elements"]) == ["c9"]
