"""Slack command and shortcut handlers for to-do management"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

import requests

from sunset_bot.core.errors import InstallationNotFound
from sunset_bot.core.installations import AccountsInstallationStore
from sunset_bot.core.tasks import TaskStore
from sunset_bot.core.tenants import TenantResolver, TenantSettings
from sunset_bot.core.windows import WindowName, compute_window, get_zone
from sunset_bot.interfaces.blocks import ResponseFormatter
from sunset_bot.monitoring.logging import get_logger

logger = get_logger(__name__)

ADD_COMMAND = "/bs"
SHORTCUT_CALLBACK_ID = "convert_todo"

LIST_COMMANDS = {
    "/bstoday": WindowName.TODAY,
    "/bstomorrow": WindowName.TOMORROW,
    "/bsyesterday": WindowName.YESTERDAY,
    "/bslater": WindowName.LATER,
    "/bsrest": WindowName.REST_OF_WEEK,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def _event_enterprise_flag(payload: dict) -> Optional[bool]:
    """Return the install flag of an Events API callback, None when Slack omits it."""
    authorizations = payload.get("authorizations") or []
    if authorizations and "is_enterprise_install" in authorizations[0]:
        return _as_bool(authorizations[0]["is_enterprise_install"])
    if "is_enterprise_install" in payload:
        return _as_bool(payload["is_enterprise_install"])
    return None


class SunsetBot:
    """Transport-independent handlers for every command and shortcut.

    Transports acknowledge the interaction first and then hand the raw
    payload to one of the ``handle_*`` methods; replies go back through the
    interaction's ``response_url``.
    """

    def __init__(
        self,
        tenants: TenantResolver,
        tasks: TaskStore,
        installation_store: AccountsInstallationStore,
        formatter: Optional[ResponseFormatter] = None,
        clock: Callable[[], datetime] = _utcnow,
        http_post: Callable = requests.post,
    ):
        self.tenants = tenants
        self.tasks = tasks
        self.installation_store = installation_store
        self.formatter = formatter or ResponseFormatter()
        self.clock = clock
        self.http_post = http_post

    def handle_slash_command(self, payload: dict):
        """Handle a slash command payload"""
        command = payload.get("command", "")
        text = (payload.get("text") or "").strip()
        user_id = payload.get("user_id")
        response_url = payload.get("response_url")

        logger.info("bot.command.received", command=command, user=user_id)

        if not self._authorize(
            user_id=user_id,
            team_id=payload.get("team_id"),
            enterprise_id=payload.get("enterprise_id"),
            is_enterprise_install=_as_bool(payload.get("is_enterprise_install")),
        ):
            return

        if command == ADD_COMMAND:
            self.handle_add_command(user_id, text, response_url)
        elif command in LIST_COMMANDS:
            self.handle_list_command(user_id, LIST_COMMANDS[command], response_url)
        else:
            self.send_response(response_url, self.formatter.unknown_command(command))

    def handle_interactive(self, payload: dict):
        """Handle interactive payloads; only the convert_todo shortcut is wired"""
        if payload.get("type") != "message_action" or payload.get("callback_id") != SHORTCUT_CALLBACK_ID:
            logger.debug(
                "bot.interactive.ignored",
                type=payload.get("type"),
                callback_id=payload.get("callback_id"),
            )
            return
        self.handle_shortcut(payload)

    def handle_shortcut(self, payload: dict):
        """Handle the convert_todo message shortcut - turn a message into a to-do"""
        user_id = (payload.get("user") or {}).get("id")
        team = payload.get("team") or {}
        enterprise = payload.get("enterprise") or {}
        response_url = payload.get("response_url")

        logger.info("bot.shortcut.received", callback_id=payload.get("callback_id"), user=user_id)

        if not self._authorize(
            user_id=user_id,
            team_id=team.get("id"),
            enterprise_id=enterprise.get("id") or team.get("enterprise_id"),
            is_enterprise_install=_as_bool(payload.get("is_enterprise_install")),
        ):
            return

        tenant_user_id = self.tenants.resolve_tenant_user_id(user_id)
        if not tenant_user_id:
            return

        title = (payload.get("message") or {}).get("text", "")
        created = self.tasks.insert_task(tenant_user_id, title)
        self.send_response(response_url, self.formatter.task_created(created))

    def handle_add_command(self, user_id: str, text: str, response_url: str):
        """Handle /bs command - add a to-do to Later

        Usage: /bs <title>
        Without a title the command replies with usage help.
        """
        tenant_user_id = self.tenants.resolve_tenant_user_id(user_id)
        if not tenant_user_id:
            return

        if not text:
            self.send_response(response_url, self.formatter.help())
            return

        created = self.tasks.insert_task(tenant_user_id, text)
        self.send_response(response_url, self.formatter.task_created(created))

    def handle_list_command(self, user_id: str, window_name: WindowName, response_url: str):
        """Handle the /bstoday, /bstomorrow, /bsyesterday, /bslater and /bsrest commands"""
        tenant_user_id = self.tenants.resolve_tenant_user_id(user_id)
        if not tenant_user_id:
            return

        settings = self.tenants.resolve_settings(tenant_user_id)
        tasks = self.list_tasks(tenant_user_id, window_name, settings)
        self.send_response(response_url, self.formatter.task_list(window_name, tasks))

    def list_tasks(self, tenant_user_id: str, window_name: WindowName, settings: TenantSettings):
        zone = get_zone(settings.timezone, self.tenants.default_timezone)
        window = compute_window(
            window_name,
            self.clock(),
            zone,
            auto_move=settings.auto_move and window_name is WindowName.TODAY,
        )
        return self.tasks.list_tasks(tenant_user_id, window)

    def handle_event(self, payload: dict):
        """Handle Events API callbacks - uninstalls and revoked tokens"""
        event = payload.get("event") or {}
        event_type = event.get("type")
        team_id = payload.get("team_id")
        enterprise_id = payload.get("enterprise_id")
        is_enterprise_install = _event_enterprise_flag(payload)

        if event_type == "app_uninstalled":
            logger.info("bot.event.app_uninstalled", team=team_id, enterprise=enterprise_id)
            self.installation_store.delete_installation(
                enterprise_id=enterprise_id,
                team_id=team_id,
                is_enterprise_install=is_enterprise_install,
            )
        elif event_type == "tokens_revoked":
            user_ids = (event.get("tokens") or {}).get("oauth") or []
            logger.info("bot.event.tokens_revoked", team=team_id, users=len(user_ids))
            for user_id in user_ids:
                self.installation_store.delete_installation(
                    enterprise_id=enterprise_id,
                    team_id=team_id,
                    user_id=user_id,
                    is_enterprise_install=is_enterprise_install,
                )
        else:
            logger.debug("bot.event.ignored", type=event_type)

    def _authorize(
        self,
        user_id: Optional[str],
        team_id: Optional[str],
        enterprise_id: Optional[str],
        is_enterprise_install: bool,
    ) -> bool:
        try:
            self.installation_store.find_installation(
                enterprise_id=enterprise_id,
                team_id=team_id,
                user_id=user_id,
                is_enterprise_install=is_enterprise_install,
            )
        except InstallationNotFound as e:
            logger.warning("bot.authorize.failed", user=user_id, team=team_id, error=str(e))
            return False
        return True

    def send_response(self, response_url: Optional[str], payload: dict):
        """Send an ephemeral reply to the interaction's response_url"""
        if not response_url:
            logger.error("bot.response.missing_url")
            return
        try:
            response = self.http_post(response_url, json=payload, timeout=10)
            if response.status_code != 200:
                logger.error(
                    "bot.response.failed",
                    status=response.status_code,
                    body=response.text[:500],
                )
            else:
                logger.debug("bot.response.sent", status=response.status_code)
        except requests.RequestException as e:
            logger.error("bot.response.exception", error=str(e))
