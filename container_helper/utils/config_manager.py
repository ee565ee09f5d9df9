"""Persisted wizard progress and environment configuration."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..core.constants import STATE_FILE_NAME
from ..models.config import EnvironmentConfig, OsSelection, WizardSnapshot

logger = logging.getLogger(__name__)


def default_environment() -> EnvironmentConfig:
    """Configuration used before anything has been saved."""
    return EnvironmentConfig(os=OsSelection(type="ubuntu", version="22.04"))


class WizardStateStore:
    """Loads and saves wizard progress as JSON in the project data directory."""

    def __init__(self, data_dir: Path):
        """Initialize state store."""
        self.data_dir = data_dir
        self.state_file = data_dir / STATE_FILE_NAME

    def load(self) -> Optional[WizardSnapshot]:
        """Load the saved snapshot, None if missing or unreadable."""
        if not self.state_file.exists():
            return None
        try:
            data = json.loads(self.state_file.read_text())
            return WizardSnapshot.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable state file {self.state_file}: {e}")
            return None

    def save(self, snapshot: WizardSnapshot) -> None:
        """Save a snapshot."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.state_file.write_text(snapshot.model_dump_json(indent=2))

    def clear(self) -> None:
        """Remove saved progress."""
        if self.state_file.exists():
            self.state_file.unlink()

    def get_environment_config(self) -> EnvironmentConfig:
        """Load the saved configuration or the default one."""
        snapshot = self.load()
        return snapshot.config if snapshot else default_environment()

    def save_environment_config(self, config: EnvironmentConfig) -> None:
        """Save a configuration, keeping the saved wizard step."""
        snapshot = self.load()
        step = snapshot.current_step if snapshot else 1
        self.save(WizardSnapshot(current_step=step, config=config))
