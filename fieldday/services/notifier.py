from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

NotificationKind = Literal["error", "success", "info"]

KIND_ERROR = "error"
KIND_SUCCESS = "success"
KIND_INFO = "info"

_LOG = logging.getLogger("fieldday.notify")
_LEVELS = {KIND_ERROR: logging.WARNING, KIND_SUCCESS: logging.INFO, KIND_INFO: logging.INFO}


@dataclass
class Notifier:
    """User-facing feedback sink. Messages are logged and kept for the response."""

    messages: list[dict[str, str]] = field(default_factory=list)

    def notify(self, kind: NotificationKind, message: str) -> None:
        normalized = str(kind or KIND_INFO).strip().lower()
        if normalized not in _LEVELS:
            normalized = KIND_INFO
        text = str(message or "").strip()
        self.messages.append({"kind": normalized, "message": text})
        _LOG.log(_LEVELS[normalized], "notify kind=%s message=%s", normalized, text)

    def error(self, message: str) -> None:
        self.notify(KIND_ERROR, message)

    def success(self, message: str) -> None:
        self.notify(KIND_SUCCESS, message)

    def info(self, message: str) -> None:
        self.notify(KIND_INFO, message)
