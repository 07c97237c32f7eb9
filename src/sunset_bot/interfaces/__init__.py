"""External interfaces - Slack handlers, transports and the CLI"""

from .blocks import ResponseFormatter
from .bot import SunsetBot

__all__ = [
    "ResponseFormatter",
    "SunsetBot",
]
