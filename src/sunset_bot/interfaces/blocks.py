"""Block Kit payloads for the bot's ephemeral replies."""

from __future__ import annotations

from typing import Iterable, Optional

from sunset_bot.core.tasks import CreatedTask, TaskRow
from sunset_bot.core.windows import WindowName

CHECKED = "✓"
UNCHECKED = "☐"

HELP_COMMANDS = {
    "/bs <task>": "Create to-do on the Later tab.",
    "/bsyesterday": "List your to-dos from the day before.",
    "/bstoday": "List your to-dos for today.",
    "/bstomorrow": "List your to-dos for tomorrow.",
    "/bsrest": "List your to-dos for rest of the week.",
    "/bslater": "List your to-dos for later.",
}


def escape_slack(text: Optional[str]) -> str:
    if text is None:
        return ""
    text = str(text)
    replacements = {"&": "&amp;", "<": "&lt;", ">": "&gt;"}
    for char, replacement in replacements.items():
        text = text.replace(char, replacement)
    return text


def block_section(text: str, markdown: bool = True) -> dict:
    """Create a section block with text"""
    block = {
        "type": "section",
        "text": {
            "type": "mrkdwn" if markdown else "plain_text",
            "text": text,
        },
    }
    # emoji is only valid for plain_text, not mrkdwn
    if not markdown:
        block["text"]["emoji"] = True
    return block


def block_link_button(text: str, button_text: str, url: str) -> dict:
    """Create a section block with a link button accessory"""
    block = block_section(text)
    block["accessory"] = {
        "type": "button",
        "text": {
            "type": "plain_text",
            "text": button_text,
            "emoji": True,
        },
        "value": "go_to_todos_section",
        "url": url,
        "action_id": "button-action",
    }
    return block


def task_line(task: TaskRow) -> str:
    glyph = CHECKED if task.is_completed else UNCHECKED
    return f"{glyph}  {escape_slack(task.task_title)}"


def _ephemeral(text: str, blocks: list) -> dict:
    return {"response_type": "ephemeral", "text": text, "blocks": blocks}


class ResponseFormatter:
    """Builds reply payloads; links point at the BeforeSunset web app."""

    def __init__(self, app_url: str = "https://app.beforesunset.ai"):
        self.app_url = app_url.rstrip("/")

    @property
    def todos_url(self) -> str:
        return f"{self.app_url}/en/todos"

    def focus_url(self, task_id: int) -> str:
        return f"{self.app_url}/en/focus/{task_id}"

    def task_list(self, window: WindowName, tasks: Iterable[TaskRow]) -> dict:
        """Reply for a list command; falls back to the empty variant."""
        tasks = list(tasks)
        if not tasks:
            return self.empty_list(window)

        header = f"Your to-dos for {window.label}:"
        lines = [task_line(task) for task in tasks]
        blocks = [block_section(header)]
        blocks.extend(block_section(line) for line in lines)
        blocks.append(
            block_link_button("See your to-dos details", "Open to-dos in BeforeSunset AI", self.todos_url)
        )
        return _ephemeral("\n".join([header, *lines]), blocks)

    def empty_list(self, window: WindowName) -> dict:
        text = f"You don’t have any to-do for {window.label}"
        return _ephemeral(text, [block_link_button(text, "Open BeforeSunset AI", self.todos_url)])

    def task_created(self, task: CreatedTask) -> dict:
        header = "Your to-do was added to “Later”"
        blocks = [
            block_section(header),
            block_section(escape_slack(task.task_title)),
            block_link_button("See your to-do details", "Open to-do in BeforeSunset AI", self.focus_url(task.id)),
        ]
        return _ephemeral(f"{header}: {task.task_title}", blocks)

    def help(self) -> dict:
        intro = (
            "☀️ *BeforeSunset AI* is an AI-powered daily and weekly planner that plans your day "
            "based on your schedule and to-do list by time-blocking on your calendar. "
            f"You can use it via Slack or the <{self.app_url}/en/login|web interface>."
        )
        command_lines = "\n".join(f"`{cmd}` - {desc}" for cmd, desc in HELP_COMMANDS.items())
        blocks = [
            block_section(intro),
            block_section(f"*Valid Slack commands:*\n{command_lines}"),
        ]
        return _ephemeral("BeforeSunset AI Slack commands", blocks)

    def unknown_command(self, command: str) -> dict:
        text = f"Unknown command: {escape_slack(command)}"
        return _ephemeral(text, [block_section(text)])
