"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="cinetix-sla", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/cinetix",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)
    db_pool_timeout: float = Field(default=30.0, description="Seconds to wait for a pooled connection", gt=0)

    # ========== SLA Configuration ==========
    sla_settings_source: str = Field(
        default="database",
        description="Where SLA targets come from: 'database' (platform_settings) or 'file'"
    )
    sla_config_path: Path = Field(
        default=Path("sla_config.yaml"),
        description="Path to SLA configuration YAML file (file source only)"
    )
    sla_check_interval_seconds: int = Field(
        default=60,
        description="Seconds between breach escalation checks (0 disables the job)",
        ge=0
    )
    sla_countdown_tick_seconds: float = Field(
        default=1.0,
        description="Seconds between countdown stream events",
        gt=0
    )

    # ========== Escalation ==========
    escalation_ledger: str = Field(
        default="memory",
        description="Notified-ticket ledger backend: 'memory' or 'database'"
    )
    escalation_ledger_max_entries: int = Field(
        default=10000,
        description="Max ticket ids remembered by the in-memory ledger",
        ge=1
    )
    escalation_ledger_ttl_hours: Optional[float] = Field(
        default=None,
        description="Forget a notified ticket after this many hours (None keeps it)",
        gt=0
    )
    escalation_notifier: str = Field(
        default="zeptomail",
        description="Escalation dispatch: 'zeptomail' or 'webhook'"
    )
    escalation_template_path: Optional[Path] = Field(
        default=None,
        description="Optional YAML file with a custom escalation email template"
    )
    notification_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for escalation dispatch calls",
        ge=0.1,
        le=60
    )

    # ========== ZeptoMail ==========
    zeptomail_api_url: str = Field(
        default="https://api.zeptomail.com/v1.1/email",
        description="ZeptoMail send endpoint"
    )
    zeptomail_api_key: Optional[str] = Field(
        default=None,
        description="ZeptoMail API key (sent as the Authorization header)"
    )
    email_from_address: str = Field(
        default="noreply@zeptomail.net",
        description="Sender address for escalation emails"
    )
    email_from_name: str = Field(
        default="Cinema Platform",
        description="Sender display name for escalation emails"
    )

    # ========== Webhook dispatch ==========
    escalation_webhook_url: Optional[str] = Field(
        default=None,
        description="URL of the send-sla-escalation dispatch function"
    )
    escalation_webhook_token: Optional[str] = Field(
        default=None,
        description="Bearer token for the dispatch function"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("sla_settings_source")
    @classmethod
    def validate_settings_source(cls, v: str) -> str:
        allowed = {"database", "file"}
        if v not in allowed:
            raise ValueError(f"sla_settings_source must be one of {allowed}")
        return v

    @field_validator("escalation_ledger")
    @classmethod
    def validate_ledger(cls, v: str) -> str:
        allowed = {"memory", "database"}
        if v not in allowed:
            raise ValueError(f"escalation_ledger must be one of {allowed}")
        return v

    @field_validator("escalation_notifier")
    @classmethod
    def validate_notifier(cls, v: str) -> str:
        allowed = {"zeptomail", "webhook"}
        if v not in allowed:
            raise ValueError(f"escalation_notifier must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class Priority(str):
    """Support ticket priority levels."""
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TicketStatus(str):
    """Support ticket lifecycle statuses."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class SLABadgeState(str):
    """Display states of a ticket's SLA badge."""
    COUNTING = "counting"
    WARNING = "warning"
    BREACHED = "breached"
    MET = "met"
    RESPONDED = "responded"
    INACTIVE = "inactive"


# ========== Status groups ==========

ACTIVE_STATUSES = (TicketStatus.OPEN, TicketStatus.IN_PROGRESS)
FINISHED_STATUSES = (TicketStatus.RESOLVED, TicketStatus.CLOSED)

# Target response hours used when platform settings hold no value
DEFAULT_SLA_TARGET_HOURS = {
    Priority.URGENT: 2,
    Priority.HIGH: 8,
    Priority.MEDIUM: 24,
    Priority.LOW: 72,
}
FALLBACK_PRIORITY = Priority.MEDIUM

# Countdown turns to warning at or below this share of the target left
WARNING_THRESHOLD_PERCENT = 25

UNKNOWN_CINEMA_NAME = "Unknown Cinema"
