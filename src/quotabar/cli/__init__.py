"""CLI framework for quotabar."""
from __future__ import annotations

from quotabar.cli.app import ExitCode
from quotabar.cli.app import app
from quotabar.cli.app import run_app

__all__ = ["app", "run_app", "ExitCode"]
