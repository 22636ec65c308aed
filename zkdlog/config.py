"""
Configuration for the zkdlog command-line tools.

The proof engine itself takes no configuration; these settings drive
the rendezvous service and the demo harness.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, asdict
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_RENDEZVOUS_PORT = 3030
DEFAULT_WAIT_TIMEOUT = 10.0


@dataclass
class RendezvousConfig:
    """Rendezvous barrier service configuration."""
    host: str = "127.0.0.1"
    port: int = DEFAULT_RENDEZVOUS_PORT
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT
    paired_retention: float = DEFAULT_WAIT_TIMEOUT


@dataclass
class DemoConfig:
    """Demo harness configuration."""
    session_id: str = "sid"
    party_id: int = 1
    iterations: int = 1


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_size_mb: int = 10
    backup_count: int = 3


@dataclass
class Config:
    """Complete tool configuration."""
    rendezvous: RendezvousConfig = field(default_factory=RendezvousConfig)
    demo: DemoConfig = field(default_factory=DemoConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.rendezvous.port < 1 or self.rendezvous.port > 65535:
            errors.append(f"Invalid rendezvous port: {self.rendezvous.port}")

        if self.rendezvous.wait_timeout <= 0:
            errors.append("wait_timeout must be positive")

        if self.rendezvous.paired_retention < 0:
            errors.append("paired_retention cannot be negative")

        if not self.demo.session_id:
            errors.append("demo session_id cannot be empty")

        if not 0 <= self.demo.party_id < 2 ** 64:
            errors.append(f"demo party_id out of u64 range: {self.demo.party_id}")

        if self.demo.iterations < 1:
            errors.append("demo iterations must be at least 1")

        if getattr(logging, self.log.level.upper(), None) is None:
            errors.append(f"Unknown log level: {self.log.level}")

        return errors

    def save(self, path: str) -> None:
        """Save configuration to file."""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: str) -> "Config":
        """Load configuration from file."""
        with open(path, "r") as f:
            data = json.load(f)

        config = cls()

        if "rendezvous" in data:
            config.rendezvous = RendezvousConfig(**data["rendezvous"])

        if "demo" in data:
            config.demo = DemoConfig(**data["demo"])

        if "log" in data:
            config.log = LogConfig(**data["log"])

        logger.info(f"Configuration loaded from {path}")
        return config

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {
            "rendezvous": asdict(self.rendezvous),
            "demo": asdict(self.demo),
            "log": asdict(self.log),
        }


def setup_logging(config: LogConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.level.upper(), logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if config.file:
        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=handlers,
        force=True,
    )
