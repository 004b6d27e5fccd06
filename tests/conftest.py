import os
import tempfile

import pytest

# Configure a throwaway SQLite database and mock services before the app is imported
_DB_DIR = tempfile.mkdtemp(prefix="digital-menu-tests-")
os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["APP_BASE_URL"] = "https://menu.example.com"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import func, select, update  # noqa: E402

from digital_menu.database import async_session_maker, reset_db  # noqa: E402
from digital_menu.main import app  # noqa: E402
from digital_menu.models import Plan, User  # noqa: E402

PASSWORD = "Secret123"


@pytest.fixture
def client():
    with TestClient(app) as c:
        c.portal.call(reset_db)
        yield c


@pytest.fixture
def owner(client):
    """Auth headers for a freshly registered FREE owner."""
    return register_and_login(client, "owner@example.com")


@pytest.fixture
def services(client):
    return client.app.state.services


# =============================================================================
# HELPERS
# =============================================================================

def register_and_login(client, email, name="Owner"):
    r = client.post("/api/auth/register", json={"name": name, "email": email, "password": PASSWORD})
    assert r.status_code == 201, r.text
    r = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['data']['accessToken']}"}


def set_plan(client, email, plan: Plan):
    async def _apply():
        async with async_session_maker() as session:
            await session.execute(update(User).where(User.email == email).values(plan=plan))
            await session.commit()

    client.portal.call(_apply)


def count_users(client) -> int:
    async def _count():
        async with async_session_maker() as session:
            return await session.scalar(select(func.count(User.id)))

    return client.portal.call(_count)


def create_menu(client, headers, slug="cafe-roma", name="Cafe Roma"):
    r = client.post("/api/menus", json={"name": name, "slug": slug}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def create_category(client, headers, menu_id, name="Pizza", **extra):
    r = client.post(
        f"/api/menus/{menu_id}/categories",
        json={"nameKa": name, **extra},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]


def create_product(client, headers, menu_id, category_id, name="Margherita", price=18.5, **extra):
    r = client.post(
        f"/api/menus/{menu_id}/products",
        json={"categoryId": category_id, "nameKa": name, "price": price, **extra},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]


def publish(client, headers, menu_id, flag=True):
    return client.post(f"/api/menus/{menu_id}/publish", json={"publish": flag}, headers=headers)
