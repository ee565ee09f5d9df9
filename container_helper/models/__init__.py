"""Models for Container Helper."""

from .config import (
    EnvironmentConfig,
    LanguageRuntime,
    OsSelection,
    SshAccessConfig,
    WizardSnapshot,
)
from .container import (
    BuildResult,
    ContainerRecord,
    ContainerState,
    MountInfo,
    PortMapping,
    RunOptions,
    RunRequest,
)

__all__ = [
    'EnvironmentConfig',
    'LanguageRuntime',
    'OsSelection',
    'SshAccessConfig',
    'WizardSnapshot',
    'BuildResult',
    'ContainerRecord',
    'ContainerState',
    'MountInfo',
    'PortMapping',
    'RunOptions',
    'RunRequest',
]
