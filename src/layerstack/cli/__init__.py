"""
CLI module for layerstack.

Provides the command-line interface using Click.
"""

from layerstack.cli.main import cli, main

__all__ = ["main", "cli"]
