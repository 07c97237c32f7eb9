"""Map Slack users to tenant-users and load their settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from sunset_bot.core.errors import TenantLookupError
from sunset_bot.core.models import TenantUserAccount, TenantUserSettings
from sunset_bot.monitoring.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TenantSettings:
    """Per-request view of the settings a tenant-user has chosen."""

    timezone: str = "UTC"
    auto_move: bool = False


class TenantResolver:
    """Read-only lookups against the accounts and settings tables."""

    def __init__(self, session_factory: sessionmaker, default_timezone: str = "UTC"):
        self.SessionLocal = session_factory
        self.default_timezone = default_timezone

    def resolve_tenant_user_id(self, slack_user_id: str) -> Optional[str]:
        """Return the tenant-user id for a Slack user, or None if unknown."""
        session = self.SessionLocal()
        try:
            account = (
                session.query(TenantUserAccount)
                .filter(TenantUserAccount.settings["user_id"].as_string() == slack_user_id)
                .order_by(TenantUserAccount.id)
                .first()
            )
        except SQLAlchemyError as e:
            logger.error("tenants.lookup.failed", slack_user_id=slack_user_id, error=str(e))
            raise TenantLookupError() from e
        finally:
            session.close()

        if account is None:
            logger.info("tenants.lookup.unknown_user", slack_user_id=slack_user_id)
            return None
        return account.tenant_user_id

    def resolve_settings(self, tenant_user_id: str) -> TenantSettings:
        """Load timezone and auto-move preference with a single read."""
        session = self.SessionLocal()
        try:
            row = session.get(TenantUserSettings, tenant_user_id)
        except SQLAlchemyError as e:
            logger.error("tenants.settings.failed", tenant_user_id=tenant_user_id, error=str(e))
            raise TenantLookupError() from e
        finally:
            session.close()

        if row is None:
            return TenantSettings(timezone=self.default_timezone)
        return TenantSettings(
            timezone=row.timezone or self.default_timezone,
            auto_move=bool(row.is_auto_moving_enabled),
        )

    def resolve_timezone(self, tenant_user_id: str) -> str:
        return self.resolve_settings(tenant_user_id).timezone

    def resolve_auto_moving(self, tenant_user_id: str) -> bool:
        return self.resolve_settings(tenant_user_id).auto_move
