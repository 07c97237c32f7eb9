"""SQLAlchemy mappings for the accounts, settings and task relations."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()

# Views are owned by the database; keep them out of Base.metadata so
# create_all never tries to create them as tables.
view_metadata = MetaData()


class PlannedAtAttribute(str, Enum):
    """Bucket used for tasks that have no explicit planned instant."""

    LATER = "LATER"
    REST_OF_THE_WEEK = "REST_OF_THE_WEEK"


class TenantUserAccount(Base):
    """One row per Slack identity; ``settings`` holds the installation blob."""

    __tablename__ = "tenants_users_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_user_id = Column(String(64), nullable=False, index=True)
    settings = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict)


class TenantUserSettings(Base):
    __tablename__ = "tenants_users_settings"

    tenant_user_id = Column(String(64), primary_key=True)
    timezone = Column(String(64), nullable=True)
    is_auto_moving_enabled = Column(Boolean, nullable=False, default=False)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_user_id = Column(String(64), nullable=False, index=True)
    task_title = Column(Text, nullable=False)
    planned_at = Column(DateTime(timezone=True), nullable=True)
    planned_at_attribute = Column(String(32), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    task_order = Column(Integer, nullable=False, default=0)
    deleted_at = Column(DateTime(timezone=True), nullable=True)


vw_tasks = Table(
    "vw_tasks",
    view_metadata,
    Column("id", Integer, primary_key=True),
    Column("tenant_user_id", String(64)),
    Column("task_title", Text),
    Column("planned_at", DateTime(timezone=True)),
    Column("planned_at_attribute", String(32)),
    Column("completed_at", DateTime(timezone=True)),
    Column("task_order", Integer),
    Column("is_displayed_in_list", Boolean),
)

_VW_TASKS_SELECT = (
    "SELECT id, tenant_user_id, task_title, planned_at, planned_at_attribute, "
    "completed_at, task_order, deleted_at IS NULL AS is_displayed_in_list FROM tasks"
)


def create_db_engine(url: str, **kwargs) -> Engine:
    """Create an engine; in-memory SQLite shares a single connection."""
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs.setdefault("poolclass", StaticPool)
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, **kwargs)


def init_db(url_or_engine, create_view: bool = True) -> Engine:
    """Create tables (and the listing view) for development databases.

    Production databases own their schema; this is used by ``sunset-bot
    init-db`` and the test-suite.
    """
    engine = url_or_engine if isinstance(url_or_engine, Engine) else create_db_engine(url_or_engine)
    Base.metadata.create_all(engine)

    if create_view:
        if engine.dialect.name == "sqlite":
            ddl = f"CREATE VIEW IF NOT EXISTS vw_tasks AS {_VW_TASKS_SELECT}"
        else:
            ddl = f"CREATE OR REPLACE VIEW vw_tasks AS {_VW_TASKS_SELECT}"
        with engine.begin() as conn:
            conn.execute(text(ddl))

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)
