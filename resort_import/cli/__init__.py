"""Command line interface for the resort import workbench."""

from .__main__ import main

__all__ = ["main"]
