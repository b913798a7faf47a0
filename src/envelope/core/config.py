#!/usr/bin/env python3
"""
Configuration Management for the Envelope Budget Ledger

Settings come from environment variables, optionally seeded from a ``.env``
file, for three environments: development, test and production.

The engine never reads configuration itself. The CLI resolves settings here
and passes them to the engines explicitly (default period type, negative-ATB
policy, reconciliation adjustment category).
"""

import logging
import os
import tempfile
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .periods import PeriodType

load_dotenv()

_LOG_FORMATS = {
    "development": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "test": "%(levelname)s %(name)s: %(message)s",
    "production": "%(asctime)s - %(levelname)s - %(message)s",
}


class Environment(Enum):
    """Deployment environment of the ledger."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class BudgetConfig:
    """Budgeting policy settings."""

    period_type: PeriodType = PeriodType.MONTHLY
    # Assignments that would push Available to Budget below zero are refused unless set
    allow_negative_atb: bool = False
    adjustment_category_id: str | None = None
    currency_symbol: str = "$"

    @classmethod
    def from_environment(cls) -> "BudgetConfig":
        return cls(
            period_type=PeriodType(os.getenv("ENVELOPE_PERIOD_TYPE", "monthly").strip().lower()),
            allow_negative_atb=_parse_bool(os.getenv("ENVELOPE_ALLOW_NEGATIVE_ATB", "false")),
            adjustment_category_id=os.getenv("ENVELOPE_ADJUSTMENT_CATEGORY") or None,
            currency_symbol=os.getenv("ENVELOPE_CURRENCY_SYMBOL", "$"),
        )


@dataclass
class Config:
    """
    Resolved ledger configuration.

    Directories are created on load, so a validated config always points at
    a usable data directory.
    """

    environment: Environment
    data_dir: Path
    audit_dir: Path
    budget: BudgetConfig
    debug: bool = False
    log_level: str = "INFO"

    @property
    def ledger_file(self) -> Path:
        """JSON snapshot used by the file-backed repository."""
        return self.data_dir / "ledger.json"

    @classmethod
    def from_environment(cls) -> "Config":
        env = Environment(os.getenv("ENVELOPE_ENV", "development"))
        data_dir = _resolve_data_dir(env)
        audit_dir = data_dir / "audit"
        audit_dir.mkdir(parents=True, exist_ok=True)

        return cls(
            environment=env,
            data_dir=data_dir,
            audit_dir=audit_dir,
            budget=BudgetConfig.from_environment(),
            debug=_parse_bool(os.getenv("DEBUG", "false")),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        )

    def validate(self) -> list[str]:
        """Return every configuration problem found; empty when valid."""
        problems = [
            f"{label} is not a directory: {path}"
            for label, path in (("data_dir", self.data_dir), ("audit_dir", self.audit_dir))
            if not path.is_dir()
        ]

        if self.budget.period_type == PeriodType.CUSTOM:
            problems.append("ENVELOPE_PERIOD_TYPE must be monthly, weekly or biweekly")
        if not self.budget.currency_symbol:
            problems.append("ENVELOPE_CURRENCY_SYMBOL must not be empty")
        if not isinstance(logging.getLevelName(self.log_level), int):
            problems.append(f"Unknown LOG_LEVEL: {self.log_level}")

        return problems

    def setup_logging(self) -> None:
        """Configure root logging for the CLI process."""
        logging.basicConfig(
            level=logging.getLevelName(self.log_level),
            format=_LOG_FORMATS[self.environment.value],
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain dictionary for display."""
        budget = asdict(self.budget)
        budget["period_type"] = self.budget.period_type.value
        return {
            "environment": self.environment.value,
            "data_dir": str(self.data_dir),
            "audit_dir": str(self.audit_dir),
            "budget": budget,
            "debug": self.debug,
            "log_level": self.log_level,
        }


def _resolve_data_dir(env: Environment) -> Path:
    override = os.getenv("ENVELOPE_DATA_DIR")
    if override:
        data_dir = Path(override).expanduser().resolve()
    elif env == Environment.TEST:
        data_dir = Path(tempfile.gettempdir()) / "test_envelope"
    else:
        data_dir = Path("./data").resolve()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


_config: Config | None = None


def get_config() -> Config:
    """
    Process-wide configuration, loaded and validated on first use.

    Raises:
        ValueError: The environment describes an invalid configuration
    """
    global _config
    if _config is not None:
        return _config

    candidate = Config.from_environment()
    problems = candidate.validate()
    if problems:
        raise ValueError(f"Configuration validation failed: {'; '.join(problems)}")
    candidate.setup_logging()
    _config = candidate
    return _config


def reload_config() -> Config:
    """Discard the cached configuration and load it again (used by tests)."""
    global _config
    _config = None
    return get_config()


def get_data_dir() -> Path:
    return get_config().data_dir


def is_test() -> bool:
    return get_config().environment == Environment.TEST
