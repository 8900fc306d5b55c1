"""
Grant Ledger TOML Configuration Loader

Loads every section of grantledger.toml with environment variable overrides.

Environment variable mapping:
    [ledger]  max_proposals → GRANTLEDGER_MAX_PROPOSALS
    [ledger]  proposal_fee  → GRANTLEDGER_PROPOSAL_FEE
    [ledger]  null_address  → GRANTLEDGER_NULL_ADDRESS
    [logging] level         → GRANTLEDGER_LOG_LEVEL
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    DEFAULT_MAX_PROPOSALS,
    DEFAULT_PROPOSAL_FEE,
    NULL_ADDRESS,
)
from ..exceptions import ConfigurationError
from ..logger import configure_logging, get_logger

logger = get_logger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_int(name: str) -> Optional[int]:
    v = os.environ.get(name)
    if not v:
        return None
    try:
        return int(v)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {v!r}") from e


@dataclass
class LedgerSectionConfig:
    """[ledger] section."""
    max_proposals: int = DEFAULT_MAX_PROPOSALS
    proposal_fee: int = DEFAULT_PROPOSAL_FEE
    null_address: str = NULL_ADDRESS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerSectionConfig":
        return cls(
            max_proposals=data.get("max_proposals", DEFAULT_MAX_PROPOSALS),
            proposal_fee=data.get("proposal_fee", DEFAULT_PROPOSAL_FEE),
            null_address=data.get("null_address", NULL_ADDRESS),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if (v := _env_int("GRANTLEDGER_MAX_PROPOSALS")) is not None:
            self.max_proposals = v
        if (v := _env_int("GRANTLEDGER_PROPOSAL_FEE")) is not None:
            self.proposal_fee = v
        if v := os.environ.get("GRANTLEDGER_NULL_ADDRESS"):
            self.null_address = v


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = "INFO"
    file_output: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=str(data.get("level", "INFO")).upper(),
            file_output=data.get("file_output", False),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("GRANTLEDGER_LOG_LEVEL"):
            self.level = v.upper()

    def apply(self) -> None:
        """Reconfigure the logging subsystem with this section's settings."""
        configure_logging(level=self.level, file_output=self.file_output)


# -----------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------

@dataclass
class LedgerConfig:
    """
    Unified ledger configuration.

    Seeds the runtime ``LedgerConfiguration`` of a ``ProposalLedger``; it is
    read once at construction and never consulted afterwards.
    """
    ledger: LedgerSectionConfig = field(default_factory=LedgerSectionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerConfig":
        """Create LedgerConfig from a parsed TOML dict."""
        return cls(
            ledger=LedgerSectionConfig.from_dict(data.get("ledger", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "LedgerConfig":
        """
        Load configuration from a TOML file.

        A missing file is not an error: defaults (with env overrides) are used.

        Raises:
            ConfigurationError: the file exists but is not valid TOML
        """
        path = Path(config_path)
        if not path.exists():
            logger.debug("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.ledger.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        if not isinstance(self.ledger.max_proposals, int) or self.ledger.max_proposals < 1:
            raise ConfigurationError("max_proposals must be an integer >= 1")
        if not isinstance(self.ledger.proposal_fee, int) or self.ledger.proposal_fee < 0:
            raise ConfigurationError("proposal_fee must be a non-negative integer")
        if not self.ledger.null_address:
            raise ConfigurationError("null_address cannot be empty")
        if self.logging.level not in _LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.logging.level}")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ledger": {
                "max_proposals": self.ledger.max_proposals,
                "proposal_fee": self.ledger.proposal_fee,
                "null_address": self.ledger.null_address,
            },
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
            },
        }


def load_config(path: Optional[str] = None) -> LedgerConfig:
    """
    Load and validate ledger configuration.

    Resolution order:
        1. Explicit *path* argument
        2. GRANTLEDGER_CONFIG env var
        3. ./grantledger.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("GRANTLEDGER_CONFIG", "grantledger.toml")

    cfg = LedgerConfig.from_file(path)
    cfg.validate()
    return cfg
