"""
Desktop notifications for backup events

One sink per operating system, picked once when the Notifier is built:
- Linux: notify-send
- macOS: osascript
- Windows: PowerShell balloon tip

Delivery is best effort. Nothing raised here reaches the backup pipeline.
"""

import asyncio
import logging
import platform
from abc import ABC, abstractmethod
from typing import List, Optional, Set

from .exceptions import NotificationError
from ..utils.logger import get_logger

logger = get_logger(__name__)

BACKUP_STARTED = "Backup Started"
BACKUP_COMPLETED = "Backup Completed"
BACKUP_FAILED = "Backup Failed"


class NotificationSink(ABC):
    """Builds the command that shows a notification on one platform"""

    platform_name = "unknown"

    @abstractmethod
    def build_command(self, title: str, message: str) -> List[str]:
        pass


class LinuxNotificationSink(NotificationSink):
    platform_name = "Linux"

    def build_command(self, title: str, message: str) -> List[str]:
        return ["notify-send", title, message]


class MacNotificationSink(NotificationSink):
    platform_name = "Darwin"

    @staticmethod
    def _quote(value: str) -> str:
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'

    def build_command(self, title: str, message: str) -> List[str]:
        script = f"display notification {self._quote(message)} with title {self._quote(title)}"
        return ["osascript", "-e", script]


class WindowsNotificationSink(NotificationSink):
    platform_name = "Windows"

    @staticmethod
    def _quote(value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def build_command(self, title: str, message: str) -> List[str]:
        script = (
            "Add-Type -AssemblyName System.Windows.Forms; "
            "$n = New-Object System.Windows.Forms.NotifyIcon; "
            "$n.Icon = [System.Drawing.SystemIcons]::Information; "
            "$n.Visible = $true; "
            f"$n.ShowBalloonTip(5000, {self._quote(title)}, {self._quote(message)}, "
            "[System.Windows.Forms.ToolTipIcon]::Info); "
            "Start-Sleep -Seconds 5; $n.Dispose()"
        )
        return ["powershell", "-NoProfile", "-NonInteractive", "-Command", script]


_SINKS = {
    sink.platform_name: sink
    for sink in (LinuxNotificationSink, MacNotificationSink, WindowsNotificationSink)
}


def detect_notification_sink(system: Optional[str] = None) -> Optional[NotificationSink]:
    """Sink for the host operating system, or None when unsupported"""
    system = system or platform.system()
    sink_cls = _SINKS.get(system)
    return sink_cls() if sink_cls else None


class Notifier:
    """Fire-and-forget notification facade"""

    def __init__(
        self,
        sink: Optional[NotificationSink] = None,
        enabled: bool = True,
        system: Optional[str] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.enabled = enabled
        self.system = system or platform.system()
        self.sink = sink if sink is not None else detect_notification_sink(self.system)
        self.logger = logger or get_logger(__name__)
        self._pending: Set[asyncio.Task] = set()

    async def notify(self, title: str, message: str):
        """Show a notification without waiting for delivery"""
        if not self.enabled:
            self.logger.debug(f"Notifications disabled, skipping: {title}")
            return

        if self.sink is None:
            self.logger.error(f"Unsupported platform for notifications: {self.system}")
            return

        try:
            await self._dispatch(title, message)
        except Exception as e:
            self.logger.error(f"Failed to send notification '{title}': {e}")

    async def _dispatch(self, title: str, message: str):
        cmd = self.sink.build_command(title, message)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise NotificationError(f"{cmd[0]} could not be started: {e}") from e

        task = asyncio.create_task(self._reap(process, title))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _reap(self, process, title: str):
        try:
            _, stderr = await process.communicate()
        except Exception as e:
            self.logger.error(f"Notification '{title}' was not delivered: {e}")
            return
        if process.returncode != 0:
            detail = stderr.decode(errors="replace").strip() if stderr else ""
            self.logger.error(
                f"Notification '{title}' was not delivered "
                f"(exit code {process.returncode}): {detail}"
            )

    async def aclose(self, timeout: float = 10.0):
        """Wait briefly for outstanding deliveries"""
        if not self._pending:
            return
        done, pending = await asyncio.wait(set(self._pending), timeout=timeout)
        for task in pending:
            task.cancel()
