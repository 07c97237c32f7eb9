"""Process wiring: database, handlers and the configured Slack transport."""

from __future__ import annotations

import signal
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from sunset_bot.core.installations import AccountsInstallationStore
from sunset_bot.core.models import create_db_engine, make_session_factory
from sunset_bot.core.tasks import TaskStore
from sunset_bot.core.tenants import TenantResolver
from sunset_bot.interfaces.blocks import ResponseFormatter
from sunset_bot.interfaces.bot import SunsetBot
from sunset_bot.monitoring.logging import configure_logging, get_logger
from sunset_bot.utils.config import ConfigNode, get_config, require_transport_settings

logger = get_logger(__name__)


def build_bot(config: ConfigNode, engine=None) -> SunsetBot:
    """Create the handlers around a database engine built from config."""
    engine = engine or create_db_engine(config.database.url)
    SessionLocal = make_session_factory(engine)
    return SunsetBot(
        tenants=TenantResolver(SessionLocal, default_timezone=config.app.default_timezone),
        tasks=TaskStore(SessionLocal),
        installation_store=AccountsInstallationStore(SessionLocal),
        formatter=ResponseFormatter(app_url=config.app.url),
    )


class SunsetBotDaemon:
    """Long-running process serving one Slack transport."""

    def __init__(self, config: Optional[ConfigNode] = None) -> None:
        self.config = config or get_config()
        require_transport_settings(self.config)
        self.bot = build_bot(self.config)
        self.transport = None
        self.executor = None

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, sig, _frame) -> None:
        logger.info("daemon.signal", signal=sig)
        self.shutdown()
        sys.exit(0)

    def shutdown(self) -> None:
        """Stop the transport and let in-flight HTTP handlers finish their replies."""
        if self.transport is not None:
            self.transport.stop()
        if self.executor is not None:
            self.executor.shutdown(wait=True)
            logger.info("daemon.executor.drained")

    def run(self) -> None:
        slack = self.config.slack
        logger.info("daemon.starting", transport=slack.transport)

        if slack.transport == "socket":
            from sunset_bot.interfaces.socket_mode import SocketModeTransport

            self.transport = SocketModeTransport(
                self.bot,
                bot_token=slack.bot_token,
                app_token=slack.app_token,
            )
            self.transport.start()
            # SocketModeClient runs its own threads; park the main thread.
            signal.pause()
            return

        from sunset_bot.interfaces.http import create_app

        self.executor = ThreadPoolExecutor(max_workers=self.config.server.workers, thread_name_prefix="sunset-bot")
        app = create_app(self.bot, slack.signing_secret, executor=self.executor)
        logger.info("daemon.http.listening", host=self.config.server.host, port=self.config.server.port)
        app.run(host=self.config.server.host, port=self.config.server.port)


def main() -> int:
    config = get_config()
    configure_logging(config.logging.level, config.logging.format)
    SunsetBotDaemon(config).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
