# src/devcoach/notify/desktop.py

from __future__ import annotations

import logging
import sys

from plyer import notification

logger = logging.getLogger(__name__)

# plyer has no "wait for click"; keep the toast up longer instead.
_TIMEOUT_SECONDS = 10
_WAIT_TIMEOUT_SECONDS = 60


class DesktopNotifier:
    """
    OS desktop notifications via plyer.

    Fire-and-forget: failures (no notification daemon, headless box, ...) are
    logged and swallowed so a check-in never crashes on the notifier.
    """

    def __init__(self, app_name: str = "devcoach", *, enabled: bool = True) -> None:
        self.app_name = app_name
        self.enabled = enabled

    def notify(self, title: str, message: str, *, sound: bool = True, wait: bool = False) -> None:
        if not self.enabled:
            logger.debug("Notifications disabled; dropping %r", title)
            return
        try:
            notification.notify(
                title=title[:64],
                message=message[:256],
                app_name=self.app_name,
                timeout=_WAIT_TIMEOUT_SECONDS if wait else _TIMEOUT_SECONDS,
            )
        except Exception as e:
            logger.warning("Desktop notification failed: %s", e)
            return

        if sound:
            try:
                sys.stdout.write("\a")
                sys.stdout.flush()
            except (OSError, ValueError):
                logger.debug("Terminal bell failed.", exc_info=True)
        logger.debug("Notification sent: %s", title)
