"""HTTP transport: Flask app receiving Slack's signed webhook requests.

Slack posts slash commands and interactive payloads as form data and Events
API callbacks as JSON, all to ``/slack/events``. The request is verified,
acknowledged with an empty ``200`` and handled on a worker pool.
"""

from __future__ import annotations

import json
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, Optional

from flask import Flask, jsonify, make_response, request
from slack_sdk.signature import SignatureVerifier

from sunset_bot import __version__
from sunset_bot.interfaces.bot import SunsetBot
from sunset_bot.monitoring.logging import get_logger

logger = get_logger(__name__)


def _run_logged(handler: Callable, payload: dict) -> None:
    try:
        handler(payload)
    except Exception as e:
        logger.error("http.handler.failed", handler=handler.__name__, error=str(e), exc_info=True)


def create_app(
    bot: SunsetBot,
    signing_secret: str,
    executor: Optional[Executor] = None,
    workers: int = 4,
) -> Flask:
    """Build the Flask application.

    Args:
        bot: Handlers to dispatch to
        signing_secret: Slack app signing secret used to verify requests
        executor: Where handlers run after the request is acknowledged
        workers: Pool size when no executor is given
    """
    app = Flask(__name__)
    verifier = SignatureVerifier(signing_secret)
    pool = executor or ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sunset-bot")

    def dispatch(handler: Callable, payload: dict):
        pool.submit(_run_logged, handler, payload)
        return make_response("", 200)

    @app.route("/slack/events", methods=["POST"])
    def slack_events():
        body = request.get_data(as_text=True)
        if not verifier.is_valid_request(body, dict(request.headers)):
            logger.warning("http.signature.invalid", remote=request.remote_addr)
            return make_response("Unauthorized", 401)

        if request.mimetype == "application/json":
            data = request.get_json(silent=True) or {}
            if data.get("type") == "url_verification":
                logger.info("http.url_verification")
                return jsonify({"challenge": data.get("challenge")})
            if data.get("type") == "event_callback":
                return dispatch(bot.handle_event, data)
            logger.info("http.event.unhandled", type=data.get("type"))
            return make_response("", 200)

        form = request.form
        if "payload" in form:
            try:
                payload = json.loads(form["payload"])
            except json.JSONDecodeError:
                logger.error("http.payload.invalid_json")
                return make_response("Bad request", 400)
            return dispatch(bot.handle_interactive, payload)

        if "command" in form:
            return dispatch(bot.handle_slash_command, form.to_dict())

        logger.warning("http.request.unsupported", content_type=request.content_type)
        return make_response("Unsupported request", 400)

    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "healthy", "version": __version__})

    return app
