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
    app_name: str = Field(default="sla-escalation-engine", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/helpdesk",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== SLA Configuration ==========
    sla_config_path: Path = Field(
        default=Path("sla_config.yaml"),
        description="Path to SLA configuration YAML file"
    )
    sla_evaluation_interval: int = Field(
        default=900,
        description="Seconds between SLA checks (0 disables the scheduler)",
        ge=0
    )
    sla_warning_fraction: float = Field(
        default=0.8,
        description="Fraction of the allowed time after which a warning is sent",
        gt=0.0,
        lt=1.0
    )
    sla_max_concurrency: int = Field(
        default=10,
        description="Tickets evaluated concurrently within one run",
        ge=1
    )
    sla_run_timeout_seconds: Optional[float] = Field(
        default=None,
        description="Overall time limit for a single SLA run",
        gt=0
    )
    sla_escalation_roles: List[str] = Field(
        default=["admin", "hr_manager"],
        description="User roles that receive breach escalations"
    )

    # ========== Email Delivery ==========
    email_api_url: str = Field(
        default="https://api.resend.com/emails",
        description="HTTP email API endpoint"
    )
    email_api_key: Optional[str] = Field(
        default=None,
        description="Email API key (delivery disabled when unset)"
    )
    email_from: str = Field(
        default="Help Desk <helpdesk@example.com>",
        description="Sender address for SLA notifications"
    )
    email_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for email API calls",
        ge=0.1,
        le=60
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

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is a standard logging level name."""
        v = v.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class TicketStatus(str):
    """Ticket lifecycle statuses."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"


class SLAType(str):
    """Types of SLA clocks."""
    RESPONSE = "response"
    RESOLUTION = "resolution"



class RecipientClass(str):
    """Who a notification was addressed to."""
    DIRECT = "direct"
    ESCALATION = "escalation"


class RunState(str):
    """SLA run lifecycle states."""
    IDLE = "idle"
    LOADING = "loading"
    EVALUATING = "evaluating"
    COMPLETED = "completed"
    FAILED = "failed"


DEFAULT_WARNING_FRACTION = 0.8


# ========== Status groups ==========

ACTIVE_STATUSES = [
    TicketStatus.OPEN, TicketStatus.IN_PROGRESS, TicketStatus.PENDING
]
