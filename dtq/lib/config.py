"""
Configuration loader for the queue.

Reads the optional <root>/.dtq/config.env file, then lets process
environment variables override it.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from . import envparse
from .constants import (
    CONFIG_FILENAME,
    DEFAULT_AGENT,
    DEFAULT_ESCALATION_CYCLES,
    LOCK_FILENAME,
    STORE_DIRNAME,
    STORE_FILENAME,
)
from .errors import ValidationError

logger = logging.getLogger(__name__)

CONFIG_KEYS = ("DTQ_AGENT", "DTQ_ESCALATION_CYCLES")


@dataclass
class QueueConfig:
    """Resolved settings for one invocation."""
    root: Path
    agent: str
    escalation_cycles: int

    @property
    def store_dir(self) -> Path:
        return self.root / STORE_DIRNAME

    @property
    def store_path(self) -> Path:
        return self.store_dir / STORE_FILENAME

    @property
    def lock_path(self) -> Path:
        return self.store_dir / LOCK_FILENAME


def resolve_root(root: str | Path | None = None) -> Path:
    """Invocation root: explicit argument, then DTQ_ROOT, then cwd."""
    if root:
        return Path(root)
    env_root = os.environ.get("DTQ_ROOT")
    if env_root:
        return Path(env_root)
    return Path.cwd()


def _parse_escalation(raw: str | None) -> int:
    if raw is None or raw == "":
        return DEFAULT_ESCALATION_CYCLES
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value < 1:
        logger.warning(
            f"Invalid DTQ_ESCALATION_CYCLES '{raw}', using {DEFAULT_ESCALATION_CYCLES}"
        )
        return DEFAULT_ESCALATION_CYCLES
    return value


def load_queue_config(root: str | Path | None = None) -> QueueConfig:
    """Load config.env (if any) and environment overrides into a QueueConfig.

    Raises:
        ValidationError: if config.env is malformed
    """
    root_path = resolve_root(root)
    config_file = root_path / STORE_DIRNAME / CONFIG_FILENAME
    try:
        env = envparse.load_env(config_file)
    except (ValueError, OSError) as e:
        raise ValidationError(f"invalid config file: {e}") from e

    for key in CONFIG_KEYS:
        if key in os.environ:
            env[key] = os.environ[key]

    return QueueConfig(
        root=root_path,
        agent=env.get("DTQ_AGENT") or DEFAULT_AGENT,
        escalation_cycles=_parse_escalation(env.get("DTQ_ESCALATION_CYCLES")),
    )
