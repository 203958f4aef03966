"""User-facing dialogs, rendered on the terminal with rich."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from rich.console import Console
from rich.panel import Panel

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """Dialog severity."""

    ERROR_MESSAGE = "error"
    WARNING_MESSAGE = "warning"
    INFORMATION_MESSAGE = "information"
    PLAIN_MESSAGE = "plain"


_STYLES = {
    MessageType.ERROR_MESSAGE: ("red", "Error"),
    MessageType.WARNING_MESSAGE: ("yellow", "Warning"),
    MessageType.INFORMATION_MESSAGE: ("cyan", "Information"),
    MessageType.PLAIN_MESSAGE: ("white", None),
}


class UIService:
    """Shows messages to the user."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def show_dialog(
        self,
        message: str,
        message_type: MessageType = MessageType.PLAIN_MESSAGE,
    ) -> None:
        style, title = _STYLES[message_type]
        if message_type is MessageType.ERROR_MESSAGE:
            logger.error(message)
        self.console.print(Panel.fit(message, title=title, border_style=style))
