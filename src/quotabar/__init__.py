"""quotabar: usage limits for AI coding CLIs, in one place."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__", "main"]


def main() -> None:
    """Entry point for the quotabar CLI."""
    from quotabar.cli.app import run_app

    run_app()
