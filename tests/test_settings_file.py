"""Tests for the YAML settings file source and the service wiring."""

import pytest

from cinetix.config import Settings
from cinetix.core import ConfigurationException
from cinetix.sla.infrastructure import (
    SLASettingsManager, FileSLASettingsProvider, InMemoryNotificationLedger,
    SQLAlchemyNotificationLedger,
    WebhookEscalationNotifier, ZeptoMailEscalationNotifier
)
from cinetix.sla.services import build_components, build_notifier


class TestSLASettingsManager:
    def test_missing_file_uses_defaults(self, tmp_path):
        manager = SLASettingsManager()

        sla_settings = manager.load(tmp_path / "sla_config.yaml")

        assert sla_settings.urgent == 2
        assert not sla_settings.escalation_enabled

    def test_loads_file(self, tmp_path):
        path = tmp_path / "sla_config.yaml"
        path.write_text(
            "urgent: 1\nhigh: 4\nescalation_enabled: true\nescalation_email: ops@cinetix.example\n",
            encoding="utf-8"
        )

        sla_settings = SLASettingsManager().load(path)

        assert sla_settings.urgent == 1
        assert sla_settings.high == 4
        assert sla_settings.medium == 24
        assert sla_settings.can_escalate

    def test_invalid_file_raises(self, tmp_path):
        path = tmp_path / "sla_config.yaml"
        path.write_text("urgent: 0\n", encoding="utf-8")

        with pytest.raises(ConfigurationException):
            SLASettingsManager().load(path)

    def test_bad_reload_keeps_last_good_settings(self, tmp_path):
        path = tmp_path / "sla_config.yaml"
        path.write_text("urgent: 3\n", encoding="utf-8")
        manager = SLASettingsManager()
        manager.load(path)

        path.write_text("urgent: -1\n", encoding="utf-8")
        assert not manager.reload()
        assert manager.settings.urgent == 3

        path.write_text("urgent: 5\n", encoding="utf-8")
        assert manager.reload()
        assert manager.settings.urgent == 5

    @pytest.mark.asyncio
    async def test_file_provider(self, tmp_path):
        path = tmp_path / "sla_config.yaml"
        path.write_text("low: 48\n", encoding="utf-8")
        manager = SLASettingsManager()
        manager.load(path)

        sla_settings = await FileSLASettingsProvider(manager).get_settings()

        assert sla_settings.low == 48

    def test_settings_before_load(self):
        with pytest.raises(RuntimeError):
            SLASettingsManager().settings


class TestWiring:
    def test_webhook_notifier_selected(self):
        app_settings = Settings(
            escalation_notifier="webhook",
            escalation_webhook_url="https://functions.example/send-sla-escalation"
        )

        assert isinstance(build_notifier(app_settings), WebhookEscalationNotifier)

    def test_zeptomail_is_default(self):
        assert isinstance(build_notifier(Settings()), ZeptoMailEscalationNotifier)

    @pytest.mark.asyncio
    async def test_memory_ledger_and_file_settings(self, tmp_path):
        app_settings = Settings(
            sla_settings_source="file",
            sla_config_path=tmp_path / "sla_config.yaml",
            escalation_ledger="memory",
            escalation_ledger_max_entries=5,
            escalation_ledger_ttl_hours=12
        )

        components = build_components(app_settings)
        try:
            assert isinstance(components.memory_ledger, InMemoryNotificationLedger)
            assert components.settings_manager is not None
            assert isinstance(components.settings_provider(session=None), FileSLASettingsProvider)
            assert components.ledger() is components.memory_ledger
        finally:
            await components.close()

    @pytest.mark.asyncio
    async def test_database_ledger(self):
        components = build_components(Settings(escalation_ledger="database"))
        try:
            assert components.memory_ledger is None
            assert components.settings_manager is None
            assert isinstance(components.ledger(), SQLAlchemyNotificationLedger)
        finally:
            await components.close()
