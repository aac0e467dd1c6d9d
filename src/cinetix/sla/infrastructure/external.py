"""
SLA External Service Integrations
==================================

External services for SLA monitoring:
- Escalation dispatch (ZeptoMail email API or a dispatch webhook)
- YAML settings file watcher
- APScheduler for the periodic breach escalation check
"""

import threading
from pathlib import Path
from typing import Optional, Dict, Any, Awaitable, Callable

import yaml
import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from pydantic import ValidationError
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from cinetix.shared.infrastructure.logging import get_logger
from cinetix.config import settings
from cinetix.core import NotificationException, ConfigurationException
from cinetix.sla.application import IEscalationNotifier, ISLASettingsProvider
from cinetix.sla.domain import EscalationNotice, SLASettings
from cinetix.sla.infrastructure.templates import EscalationEmailTemplate

logger = get_logger(__name__)


# ========== Settings file ==========

class SettingsFileHandler(FileSystemEventHandler):
    """Watchdog event handler for SLA settings file changes."""

    def __init__(self, manager: "SLASettingsManager", config_path: Path):
        self.manager = manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        """Handle file modification event."""
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info(f"SLA settings file changed: {event.src_path}")
            self.manager.reload()


class SLASettingsManager:
    """
    Thread-safe SLA settings holder with hot-reload support.

    Uses watchdog to monitor the YAML file and reload settings
    without restarting the service. A bad edit keeps the last good settings.
    """

    def __init__(self):
        self._settings: Optional[SLASettings] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> SLASettings:
        """Initial settings load."""
        self._path = path
        loaded = self._load_from_file(path)
        with self._lock:
            self._settings = loaded
        return loaded

    def _load_from_file(self, path: Path) -> SLASettings:
        """Load and validate the YAML settings file."""
        if not path.exists():
            logger.warning(f"SLA settings file not found: {path}, using defaults")
            return SLASettings()

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        try:
            return SLASettings(**data)
        except ValidationError as e:
            raise ConfigurationException(f"Invalid SLA settings in {path}", {"errors": e.errors()})

    def reload(self) -> bool:
        """Reload settings from file."""
        if self._path is None:
            return False

        try:
            new_settings = self._load_from_file(self._path)
        except (ConfigurationException, yaml.YAMLError, OSError) as e:
            logger.error(f"Failed to reload SLA settings: {e}")
            return False

        with self._lock:
            self._settings = new_settings
        logger.info("SLA settings reloaded successfully")
        return True

    def start_watching(self) -> None:
        """
        Start watching the settings file for changes.

        Skips watching when the file doesn't exist or inotify is unavailable.
        """
        if self._path is None:
            raise RuntimeError("Settings not loaded. Call load() first.")

        if not self._path.exists():
            logger.info(
                f"SLA settings file doesn't exist, skipping file watch: {self._path}. "
                "Using default SLA settings."
            )
            return

        try:
            self._observer = Observer()
            handler = SettingsFileHandler(self, self._path)
            self._observer.schedule(
                handler,
                str(self._path.parent),
                recursive=False
            )
            self._observer.start()
            logger.info(f"Started watching SLA settings file: {self._path}")
        except OSError as e:
            logger.warning(
                f"File watching not available, using static SLA settings: {e}"
            )
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching the settings file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def settings(self) -> SLASettings:
        """Get current settings."""
        with self._lock:
            if self._settings is None:
                raise RuntimeError("SLA settings not loaded")
            return self._settings


class FileSLASettingsProvider(ISLASettingsProvider):
    """SLA settings provider backed by a hot-reloaded YAML file."""

    def __init__(self, manager: SLASettingsManager):
        self._manager = manager

    async def get_settings(self) -> Optional[SLASettings]:
        return self._manager.settings


# ========== Escalation dispatch ==========

class ZeptoMailEscalationNotifier(IEscalationNotifier):
    """
    Sends the breach email straight through the ZeptoMail API.

    One attempt per call; the escalation check retries on its next run.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        template: Optional[EscalationEmailTemplate] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self._api_key = api_key if api_key is not None else settings.zeptomail_api_key
        self._api_url = api_url or settings.zeptomail_api_url
        self._template = template or EscalationEmailTemplate()
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=settings.notification_timeout_seconds
            )
        return self._http_client

    def _build_message(self, notice: EscalationNotice) -> Dict[str, Any]:
        """Build the ZeptoMail send payload."""
        return {
            "from": {
                "address": settings.email_from_address,
                "name": settings.email_from_name
            },
            "to": [{"email_address": {"address": notice.escalation_email}}],
            "subject": self._template.render_subject(notice),
            "htmlbody": self._template.render_body(notice)
        }

    async def send(self, notice: EscalationNotice) -> None:
        if not self._api_key:
            raise NotificationException("ZeptoMail API key not configured")

        client = await self._get_client()
        try:
            response = await client.post(
                self._api_url,
                json=self._build_message(notice),
                headers={"Authorization": self._api_key}
            )
        except httpx.HTTPError as e:
            raise NotificationException(
                f"ZeptoMail request failed: {e}",
                {"ticket_id": notice.ticket_id}
            ) from e

        if response.is_error:
            raise NotificationException(
                f"ZeptoMail returned {response.status_code}",
                {"ticket_id": notice.ticket_id, "body": response.text}
            )

        logger.debug(
            "Escalation email accepted",
            extra={"ticket_id": notice.ticket_id, "status_code": response.status_code}
        )

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


class WebhookEscalationNotifier(IEscalationNotifier):
    """
    Hands the escalation to the send-sla-escalation dispatch function.

    Posts the fixed parameter set as camelCase JSON; any non-2xx answer
    counts as a failed send.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self._url = url or settings.escalation_webhook_url
        self._token = token if token is not None else settings.escalation_webhook_token
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=settings.notification_timeout_seconds
            )
        return self._http_client

    async def send(self, notice: EscalationNotice) -> None:
        if not self._url:
            raise NotificationException("Escalation webhook URL not configured")

        headers = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        client = await self._get_client()
        try:
            response = await client.post(self._url, json=notice.to_payload(), headers=headers)
        except httpx.HTTPError as e:
            raise NotificationException(
                f"Dispatch request failed: {e}",
                {"ticket_id": notice.ticket_id}
            ) from e

        if response.is_error:
            raise NotificationException(
                f"Dispatch returned {response.status_code}",
                {"ticket_id": notice.ticket_id, "body": response.text}
            )

    async def close(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


# ========== Scheduler ==========

class SLAScheduler:
    """
    Wrapper for APScheduler for the periodic breach escalation check.

    Manages the lifecycle of the scheduler and jobs.
    """

    def __init__(self, interval_seconds: int = 60):
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def start(self, job_func: Callable[[], Awaitable[Any]]) -> None:
        """Start the scheduler with the given job function."""
        if self._running:
            logger.warning("SLA scheduler already running")
            return

        self._scheduler = AsyncIOScheduler()

        # max_instances=1: a slow scan is never overlapped by the next tick
        self._scheduler.add_job(
            job_func,
            "interval",
            seconds=self.interval_seconds,
            id="sla_breach_escalation",
            name="SLA Breach Escalation Check",
            misfire_grace_time=self.interval_seconds,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )

        self._scheduler.start()
        self._running = True

        logger.info(
            "SLA scheduler started",
            extra={"interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)

        self._running = False
        logger.info("SLA scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running
