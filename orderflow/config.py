"""
Configuration — environment-driven settings.

    ORDERFLOW_DATABASE_URL      SQLAlchemy async URL (default: in-memory sqlite)
    ORDERFLOW_SHIPPING_URL      rate service endpoint; flat rates when unset
    ORDERFLOW_SHIPPING_TIMEOUT  seconds allowed for one rate quote
    ORDERFLOW_LOG_LEVEL         logging level name
    ORDERFLOW_ECHO_SQL          "true" to echo SQL statements
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from orderflow.errors import ValidationError

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    shipping_url: str | None = None
    shipping_timeout: float = 10.0
    log_level: str = "INFO"
    echo_sql: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        raw_timeout = env.get("ORDERFLOW_SHIPPING_TIMEOUT", "10")
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ValidationError(
                f"ORDERFLOW_SHIPPING_TIMEOUT inválido: {raw_timeout!r}",
                action="Informe um número de segundos.",
            ) from None

        return cls(
            database_url=env.get("ORDERFLOW_DATABASE_URL", DEFAULT_DATABASE_URL),
            shipping_url=env.get("ORDERFLOW_SHIPPING_URL") or None,
            shipping_timeout=timeout,
            log_level=env.get("ORDERFLOW_LOG_LEVEL", "INFO").upper(),
            echo_sql=env.get("ORDERFLOW_ECHO_SQL", "").lower() in _TRUTHY,
        )


def configure_logging(level: str = "INFO") -> None:
    """Install a basic root handler for the service process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


__all__ = ("DEFAULT_DATABASE_URL", "Settings", "configure_logging")
