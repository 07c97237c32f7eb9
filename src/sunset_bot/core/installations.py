"""Slack installation store backed by the tenant accounts table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from slack_sdk.oauth.installation_store import Installation, InstallationStore
from sqlalchemy.orm import sessionmaker

from sunset_bot.core.errors import InstallationNotFound
from sunset_bot.core.models import TenantUserAccount
from sunset_bot.monitoring.logging import get_logger

logger = get_logger(__name__)

BOT_SCOPES = [
    "channels:history",
    "chat:write",
    "commands",
    "groups:history",
    "im:history",
    "mpim:history",
    "app_mentions:read",
    "channels:join",
    "chat:write.customize",
    "users:read",
    "channels:manage",
]


@dataclass(frozen=True)
class TeamInstallKey:
    team_id: str
    user_id: Optional[str] = None


@dataclass(frozen=True)
class EnterpriseInstallKey:
    enterprise_id: str
    user_id: Optional[str] = None


InstallKey = Union[TeamInstallKey, EnterpriseInstallKey]


def install_key(
    *,
    enterprise_id: Optional[str],
    team_id: Optional[str],
    user_id: Optional[str] = None,
    is_enterprise_install: Optional[bool] = False,
) -> InstallKey:
    """Pick the lookup key for an installation query.

    Raises:
        InstallationNotFound: neither a usable enterprise id nor a team id
    """
    if is_enterprise_install and enterprise_id is not None:
        return EnterpriseInstallKey(enterprise_id=enterprise_id, user_id=user_id)
    if team_id is not None:
        return TeamInstallKey(team_id=team_id, user_id=user_id)
    raise InstallationNotFound("Failed fetching installation")


def to_installation(settings: Dict[str, Any]) -> Installation:
    """Normalize an account ``settings`` blob into a slack_sdk Installation."""
    team = settings.get("team") or {}
    enterprise = settings.get("enterprise") or {}
    return Installation(
        app_id=settings.get("app_id"),
        enterprise_id=enterprise.get("id") or settings.get("enterprise_id"),
        enterprise_name=enterprise.get("name"),
        team_id=team.get("id") or settings.get("team_id"),
        team_name=team.get("name"),
        bot_token=settings.get("access_token"),
        bot_user_id=settings.get("bot_user_id"),
        bot_scopes=BOT_SCOPES,
        user_id=settings.get("user_id"),
        token_type=settings.get("token_type"),
        is_enterprise_install=bool(settings.get("is_enterprise_install")),
    )


class AccountsInstallationStore(InstallationStore):
    """Installation lookups and deletions against ``tenants_users_accounts``.

    Rows are created by the BeforeSunset app when a user connects Slack, so
    ``save`` is not supported here.
    """

    def __init__(self, session_factory: sessionmaker):
        self.SessionLocal = session_factory

    @property
    def logger(self):
        return logger

    def _filter(self, query, key: InstallKey):
        settings = TenantUserAccount.settings
        if isinstance(key, EnterpriseInstallKey):
            query = query.filter(settings["enterprise_id"].as_string() == key.enterprise_id)
        else:
            query = query.filter(settings["team_id"].as_string() == key.team_id)
        if key.user_id is not None:
            query = query.filter(settings["user_id"].as_string() == key.user_id)
        return query

    def find_installation(
        self,
        *,
        enterprise_id: Optional[str],
        team_id: Optional[str],
        user_id: Optional[str] = None,
        is_enterprise_install: Optional[bool] = False,
    ) -> Installation:
        """Return the installation for the key.

        Raises:
            InstallationNotFound: no usable key or no matching row
        """
        key = install_key(
            enterprise_id=enterprise_id,
            team_id=team_id,
            user_id=user_id,
            is_enterprise_install=is_enterprise_install,
        )
        session = self.SessionLocal()
        try:
            account = (
                self._filter(session.query(TenantUserAccount), key)
                .order_by(TenantUserAccount.id)
                .first()
            )
        finally:
            session.close()

        if account is None:
            logger.warning("installations.find.missing", key=repr(key))
            raise InstallationNotFound(f"No installation for {key!r}")
        return to_installation(account.settings)

    def delete_installation(
        self,
        *,
        enterprise_id: Optional[str],
        team_id: Optional[str],
        user_id: Optional[str] = None,
        is_enterprise_install: Optional[bool] = None,
    ) -> None:
        """Delete matching rows; succeeds silently when nothing matches."""
        if is_enterprise_install is None:
            is_enterprise_install = enterprise_id is not None and team_id is None
        key = install_key(
            enterprise_id=enterprise_id,
            team_id=team_id,
            user_id=user_id,
            is_enterprise_install=is_enterprise_install,
        )
        session = self.SessionLocal()
        try:
            deleted = self._filter(session.query(TenantUserAccount), key).delete(synchronize_session=False)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        logger.info("installations.delete.done", key=repr(key), rows=deleted)
        return None
