import asyncio
import os
from types import SimpleNamespace

# Must be set before anything imports core.config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ACTUATOR_ADDRESS"] = ""
os.environ["ACTUATOR_REGISTER_TOKEN"] = ""
os.environ["OPERATING_MODE"] = "manual"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import core.actuator
from core.actuator import ActuatorGateway, get_gateway
from core.mode import ModeGate, get_mode_gate
from db.database import Base, get_async_session, get_session_maker
from db.warehouse import Cell, CellStock, LoadingSlot, Product


@pytest.fixture()
def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'warehouse.db'}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture()
def run(session_maker):
    """Run `fn(db)` in a fresh session and commit. Returns whatever fn returns."""

    def _run(fn):
        async def _go():
            async with session_maker() as db:
                out = await fn(db)
                await db.commit()
                return out

        return asyncio.run(_go())

    return _run


@pytest.fixture()
def layout(run):
    """
    2x2 grid + 2 loading slots + 2 products.

    Cell c1 holds p1 x10, cell c2 holds p2 x4, c3/c4 are empty, both slots EMPTY.
    """

    async def _seed(db):
        cells = [Cell(row_num=r, col_num=c, label=f"R{r}C{c}") for r in (1, 2) for c in (1, 2)]
        slots = [LoadingSlot(slot_num=n, status="EMPTY", quantity=0) for n in (1, 2)]
        p1 = Product(name="Water 1.5L", sku="WTR-150", rfid_uid="04A1B2C3")
        p2 = Product(name="Rice 5kg", sku="RCE-500")
        db.add_all([*cells, *slots, p1, p2])
        await db.flush()
        db.add(CellStock(cell_id=cells[0].id, product_id=p1.id, quantity=10))
        db.add(CellStock(cell_id=cells[1].id, product_id=p2.id, quantity=4))
        return SimpleNamespace(
            c1=cells[0].id,
            c2=cells[1].id,
            c3=cells[2].id,
            c4=cells[3].id,
            s1=slots[0].id,
            s2=slots[1].id,
            p1=p1.id,
            p2=p2.id,
        )

    return run(_seed)


class FakeActuatorHttp:
    """Stands in for requests.get against the controller."""

    def __init__(self):
        self.calls = []
        self.status_code = 200
        self.text = "OK"
        self.error = None

    def get(self, url, timeout=None):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(status_code=self.status_code, text=self.text)


@pytest.fixture()
def actuator_http(monkeypatch):
    fake = FakeActuatorHttp()
    monkeypatch.setattr(core.actuator.requests, "get", fake.get)
    return fake


@pytest.fixture()
def gateway(actuator_http):
    """Gateway with no registered address."""
    return ActuatorGateway()


@pytest.fixture()
def registered_gateway(actuator_http):
    gw = ActuatorGateway()
    gw.register("192.168.1.50")
    return gw


@pytest.fixture()
def mode_gate():
    return ModeGate("manual")


@pytest.fixture()
def client(session_maker, gateway, mode_gate):
    from main import app

    async def _session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = _session
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_mode_gate] = lambda: mode_gate
    yield TestClient(app)
    app.dependency_overrides.clear()
