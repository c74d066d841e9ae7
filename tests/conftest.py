"""
Shared fixtures.

Every test gets its own SQLite file (aiosqlite), a FastAPI app bound to it,
and an httpx client talking to the app in-process. Outgoing OTP emails are
captured instead of sent.
"""
import httpx
import pytest
import pytest_asyncio

from uniconnect.controllers import otp_controller
from uniconnect.core.config import Settings
from uniconnect.core.database import Database
from uniconnect.main import create_app

ADMIN_KEY = "test-admin-key"


def student_payload(**overrides) -> dict:
    data = {
        "fullName": "Sara Ahmed",
        "email": "sara@uni.edu",
        "track": "AI & Data",
        "skills": ["Python", "PyTorch"],
        "bio": "Looking for a team working on medical imaging.",
        "linkedIn": "https://linkedin.com/in/sara",
        "github": "https://github.com/sara",
        "telegram": "@sara",
        "avatar": "young-female-1",
    }
    data.update(overrides)
    return data


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        ADMIN_SECRET_KEY=ADMIN_KEY,
        SENDINBLUE_API_KEY="test-api-key",
        APP_ENV="test",
    )


@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings.DATABASE_URL)
    await db.init()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def app(settings, database):
    application = create_app(settings)
    application.state.database = database
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def admin_headers() -> dict:
    return {"x-admin-key": ADMIN_KEY}


@pytest.fixture
def sent_emails(monkeypatch) -> list[dict]:
    """Replaces the Brevo call; each entry holds the kwargs of one send."""
    outbox: list[dict] = []

    async def fake_send(settings, **kwargs):
        outbox.append(kwargs)

    monkeypatch.setattr(otp_controller, "send_otp_email", fake_send)
    return outbox
