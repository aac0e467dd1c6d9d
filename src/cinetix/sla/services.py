"""
SLA Service Wiring
==================

Builds the SLA services from settings and runs the escalation job.

Long-lived pieces (settings file manager, in-memory ledger, notifier) are
created once per process; repositories are bound to a session per job run
or per request. Countdown streams and the database ledger open a short
session per call instead of holding one.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cinetix.config import Settings
from cinetix.sla.application import (
    SLACountdownService, SLABreachEscalationService, EscalationRunResult,
    ISLASettingsProvider, IEscalationNotifier, INotificationLedger
)
from cinetix.sla.infrastructure import (
    SQLAlchemySupportTicketRepository, SQLAlchemySLASettingsProvider,
    SQLAlchemyNotificationLedger, InMemoryNotificationLedger,
    SessionScopedTicketRepository, SessionScopedSLASettingsProvider, SessionFactory,
    SLASettingsManager, FileSLASettingsProvider,
    ZeptoMailEscalationNotifier, WebhookEscalationNotifier,
    EscalationEmailTemplate
)
from cinetix.infrastructure.database import get_session_context
from cinetix.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SLAComponents:
    """Process-wide SLA collaborators."""
    notifier: IEscalationNotifier
    settings_manager: Optional[SLASettingsManager] = None
    memory_ledger: Optional[InMemoryNotificationLedger] = None
    session_factory: SessionFactory = get_session_context
    escalation_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def settings_provider(self, session: AsyncSession) -> ISLASettingsProvider:
        if self.settings_manager is not None:
            return FileSLASettingsProvider(self.settings_manager)
        return SQLAlchemySLASettingsProvider(session)

    def ledger(self) -> INotificationLedger:
        if self.memory_ledger is not None:
            return self.memory_ledger
        return SQLAlchemyNotificationLedger(self.session_factory)

    def countdown_service(self, session: AsyncSession) -> SLACountdownService:
        return SLACountdownService(
            SQLAlchemySupportTicketRepository(session),
            self.settings_provider(session)
        )

    def streaming_countdown_service(self) -> SLACountdownService:
        """Countdown service for streams; every read uses its own short session."""
        settings_provider: ISLASettingsProvider = SessionScopedSLASettingsProvider(self.session_factory)
        if self.settings_manager is not None:
            settings_provider = FileSLASettingsProvider(self.settings_manager)
        return SLACountdownService(
            SessionScopedTicketRepository(self.session_factory),
            settings_provider
        )

    def escalation_service(self, session: AsyncSession) -> SLABreachEscalationService:
        return SLABreachEscalationService(
            SQLAlchemySupportTicketRepository(session),
            self.settings_provider(session),
            self.notifier,
            self.ledger()
        )

    async def close(self) -> None:
        """Release the notifier's HTTP client and stop the file watcher."""
        if self.settings_manager is not None:
            self.settings_manager.stop_watching()
        close = getattr(self.notifier, "close", None)
        if close is not None:
            await close()


def build_notifier(app_settings: Settings) -> IEscalationNotifier:
    """Create the configured escalation dispatch."""
    if app_settings.escalation_notifier == "webhook":
        return WebhookEscalationNotifier(
            url=app_settings.escalation_webhook_url,
            token=app_settings.escalation_webhook_token
        )

    template = EscalationEmailTemplate()
    if app_settings.escalation_template_path is not None:
        template = EscalationEmailTemplate.from_file(app_settings.escalation_template_path)
    return ZeptoMailEscalationNotifier(
        api_key=app_settings.zeptomail_api_key,
        api_url=app_settings.zeptomail_api_url,
        template=template
    )


def build_components(app_settings: Settings) -> SLAComponents:
    """Create the process-wide SLA collaborators from settings."""
    settings_manager = None
    if app_settings.sla_settings_source == "file":
        settings_manager = SLASettingsManager()
        settings_manager.load(app_settings.sla_config_path)
        settings_manager.start_watching()

    memory_ledger = None
    if app_settings.escalation_ledger == "memory":
        ttl = None
        if app_settings.escalation_ledger_ttl_hours:
            ttl = timedelta(hours=app_settings.escalation_ledger_ttl_hours)
        memory_ledger = InMemoryNotificationLedger(
            max_entries=app_settings.escalation_ledger_max_entries,
            ttl=ttl
        )

    return SLAComponents(
        notifier=build_notifier(app_settings),
        settings_manager=settings_manager,
        memory_ledger=memory_ledger
    )


async def run_escalation_check(components: SLAComponents) -> EscalationRunResult:
    """
    Run one breach escalation check in its own session.

    Runs are serialized per process. Database errors outside the service
    (connect, commit) are logged and reported as a skipped run.
    """
    async with components.escalation_lock:
        try:
            async with components.session_factory() as session:
                service = components.escalation_service(session)
                result = await service.check_and_notify()
                await session.commit()
                return result
        except Exception as e:
            logger.error("SLA escalation job failed", extra={"error": str(e)})
            return EscalationRunResult(
                checked_at=datetime.now(timezone.utc),
                skipped_reason="database_unavailable"
            )
