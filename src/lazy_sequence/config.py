"""Configuration management for the demo runner."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


@dataclass
class DemoConfig:
    """Parameters of the naturals -> skip -> transform -> take chain."""

    start: int = 0
    skip: int = 3
    take: int = 5
    factor: int = 2
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "DemoConfig":
        """Load demo configuration from environment variables."""
        return cls(
            start=int(os.getenv("LAZY_SEQUENCE_START", "0")),
            skip=int(os.getenv("LAZY_SEQUENCE_SKIP", "3")),
            take=int(os.getenv("LAZY_SEQUENCE_TAKE", "5")),
            factor=int(os.getenv("LAZY_SEQUENCE_FACTOR", "2")),
            verbose=_env_bool("LAZY_SEQUENCE_VERBOSE", "false"),
        )

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.skip < 0:
            raise ValueError("skip must be non-negative")
        if self.take < 0:
            raise ValueError("take must be non-negative")


def get_demo_config() -> DemoConfig:
    """Get demo configuration."""
    return DemoConfig.from_env()
