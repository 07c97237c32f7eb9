"""Socket Mode transport: receives interactions over Slack's WebSocket"""

from __future__ import annotations

from slack_sdk import WebClient
from slack_sdk.socket_mode import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse

from sunset_bot.interfaces.bot import SunsetBot
from sunset_bot.monitoring.logging import get_logger

logger = get_logger(__name__)


class SocketModeTransport:
    """Feeds Socket Mode envelopes to a SunsetBot"""

    def __init__(self, bot: SunsetBot, bot_token: str, app_token: str):
        self.bot = bot
        self.client = WebClient(token=bot_token)
        self.socket_mode_client = SocketModeClient(app_token=app_token, web_client=self.client)

    def start(self):
        """Connect and start listening for envelopes"""
        self.socket_mode_client.socket_mode_request_listeners.append(self.handle_request)
        self.socket_mode_client.connect()
        logger.info("socket_mode.started")

    def stop(self):
        self.socket_mode_client.close()
        logger.info("socket_mode.stopped")

    def handle_request(self, client: SocketModeClient, req: SocketModeRequest):
        """Acknowledge an envelope, then dispatch it to the bot"""
        # Acknowledge immediately to meet Slack's 3-second requirement
        client.send_socket_mode_response(SocketModeResponse(envelope_id=req.envelope_id))

        try:
            if req.type == "slash_commands":
                self.bot.handle_slash_command(req.payload)
            elif req.type == "interactive":
                self.bot.handle_interactive(req.payload)
            elif req.type == "events_api":
                self.bot.handle_event(req.payload)
            else:
                logger.debug("socket_mode.request.ignored", type=req.type)
        except Exception as e:
            logger.error("socket_mode.request.failed", type=req.type, error=str(e), exc_info=True)
