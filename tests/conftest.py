import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Make `import sunset_bot` work from a source checkout without installing.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from sunset_bot.core.installations import AccountsInstallationStore  # noqa: E402
from sunset_bot.core.models import (  # noqa: E402
    Task,
    TenantUserAccount,
    TenantUserSettings,
    create_db_engine,
    init_db,
    make_session_factory,
)
from sunset_bot.core.tasks import TaskStore  # noqa: E402
from sunset_bot.core.tenants import TenantResolver  # noqa: E402
from sunset_bot.interfaces.blocks import ResponseFormatter  # noqa: E402
from sunset_bot.interfaces.bot import SunsetBot  # noqa: E402

# Wednesday; the ISO week ends at Monday 2026-10-19 00:00 UTC.
NOW = datetime(2026, 10, 14, 15, 0, tzinfo=timezone.utc)
APP_URL = "https://test.app.beforesunset.ai"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, status_code=200, text="ok"):
        self.status_code = status_code
        self.text = text


class RecordingPost:
    """Stands in for requests.post and records every reply."""

    def __init__(self, status_code=200):
        self.calls = []
        self.status_code = status_code

    def __call__(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        return FakeResponse(self.status_code)


@pytest.fixture
def engine():
    engine = init_db(create_db_engine("sqlite://"))
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def add_account(db):
    def _add(tenant_user_id="tu-1", user_id="U1", team_id="T1", **settings):
        blob = {
            "user_id": user_id,
            "team_id": team_id,
            "team": {"id": team_id, "name": "Acme"} if team_id else None,
            "access_token": f"xoxb-{user_id}",
            "bot_user_id": "B1",
            "app_id": "A1",
            "token_type": "bot",
            "is_enterprise_install": False,
        }
        blob.update(settings)
        account = TenantUserAccount(tenant_user_id=tenant_user_id, settings=blob)
        db.add(account)
        db.commit()
        return account

    return _add


@pytest.fixture
def add_settings(db):
    def _add(tenant_user_id="tu-1", timezone_name="UTC", auto_move=False):
        row = TenantUserSettings(
            tenant_user_id=tenant_user_id,
            timezone=timezone_name,
            is_auto_moving_enabled=auto_move,
        )
        db.add(row)
        db.commit()
        return row

    return _add


@pytest.fixture
def add_task(db):
    def _add(title, tenant_user_id="tu-1", planned_at=None, attribute=None, completed_at=None, deleted_at=None):
        task = Task(
            tenant_user_id=tenant_user_id,
            task_title=title,
            planned_at=planned_at,
            planned_at_attribute=attribute,
            completed_at=completed_at,
            deleted_at=deleted_at,
            task_order=0,
        )
        db.add(task)
        db.commit()
        return task

    return _add


@pytest.fixture
def tenants(session_factory):
    return TenantResolver(session_factory)


@pytest.fixture
def task_store(session_factory):
    return TaskStore(session_factory)


@pytest.fixture
def installation_store(session_factory):
    return AccountsInstallationStore(session_factory)


@pytest.fixture
def http_post():
    return RecordingPost()


@pytest.fixture
def bot(tenants, task_store, installation_store, http_post):
    return SunsetBot(
        tenants=tenants,
        tasks=task_store,
        installation_store=installation_store,
        formatter=ResponseFormatter(app_url=APP_URL),
        clock=lambda: NOW,
        http_post=http_post,
    )
