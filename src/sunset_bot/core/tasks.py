"""Task reads against the listing view and inserts into the tasks table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import sessionmaker

from sunset_bot.core.models import PlannedAtAttribute, Task, vw_tasks
from sunset_bot.core.windows import TaskWindow
from sunset_bot.monitoring.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaskRow:
    id: int
    task_title: str
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


@dataclass(frozen=True)
class CreatedTask:
    id: int
    task_title: str


def window_clause(window: TaskWindow):
    """Translate a TaskWindow into a WHERE clause on ``vw_tasks``."""
    planned_at = vw_tasks.c.planned_at

    date_range = [planned_at >= window.start]
    if window.end is not None:
        date_range.append(planned_at < window.end)
    conditions = [and_(*date_range)]

    if window.attribute is not None:
        conditions.append(
            and_(
                vw_tasks.c.planned_at_attribute == window.attribute.value,
                planned_at.is_(None),
            )
        )

    if window.overdue_since is not None:
        conditions.append(
            and_(
                vw_tasks.c.completed_at.is_(None),
                planned_at >= window.overdue_since,
                planned_at < window.start,
            )
        )

    return or_(*conditions)


class TaskStore:
    """Reads and inserts tasks on behalf of a tenant-user."""

    def __init__(self, session_factory: sessionmaker):
        self.SessionLocal = session_factory

    def insert_task(self, tenant_user_id: str, title: str) -> CreatedTask:
        """Insert a task into the Later bucket.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: the insert was rejected
        """
        session = self.SessionLocal()
        try:
            task = Task(
                tenant_user_id=tenant_user_id,
                task_title=title,
                planned_at=None,
                planned_at_attribute=PlannedAtAttribute.LATER.value,
                task_order=0,
            )
            session.add(task)
            session.commit()
            logger.info("tasks.insert.created", task_id=task.id, tenant_user_id=tenant_user_id)
            return CreatedTask(id=task.id, task_title=task.task_title)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def list_tasks(self, tenant_user_id: str, window: TaskWindow) -> List[TaskRow]:
        """Return displayed tasks matching ``window``, oldest first."""
        stmt = (
            select(vw_tasks.c.id, vw_tasks.c.task_title, vw_tasks.c.completed_at)
            .where(vw_tasks.c.tenant_user_id == tenant_user_id)
            .where(vw_tasks.c.is_displayed_in_list.is_(True))
            .where(window_clause(window))
            .order_by(vw_tasks.c.id)
        )
        session = self.SessionLocal()
        try:
            rows = session.execute(stmt).all()
        finally:
            session.close()

        logger.debug(
            "tasks.list.fetched",
            tenant_user_id=tenant_user_id,
            window=window.name.value,
            count=len(rows),
        )
        return [TaskRow(id=row.id, task_title=row.task_title, completed_at=row.completed_at) for row in rows]
