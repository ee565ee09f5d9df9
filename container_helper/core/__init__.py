"""Core functionality for Container Helper."""
