# Overview: Notification hand-off used by the low-stock alert dispatcher.

"""
The sender is a collaborator: send(target, subject, body) -> bool.

The default sender writes to the "stockroom.notifications" logger. Other
transports (email, chat webhooks) plug in by passing notification_sender to
create_app(); the dispatcher only sees the protocol.
"""

from __future__ import annotations

import logging
from typing import Protocol

from flask import current_app


class NotificationSender(Protocol):
    def send(self, target: str, subject: str, body: str) -> bool:
        ...


class LogNotificationSender:
    """Records notifications in the application log."""

    def __init__(self, logger_name: str = "stockroom.notifications"):
        self.logger = logging.getLogger(logger_name)

    def send(self, target: str, subject: str, body: str) -> bool:
        self.logger.info("Notification to %s: %s - %s", target, subject, body)
        return True


def get_sender() -> NotificationSender:
    return current_app.extensions["notification_sender"]
