"""Utilities for Container Helper."""

from .config_manager import WizardStateStore, default_environment

__all__ = [
    'WizardStateStore',
    'default_environment',
]
