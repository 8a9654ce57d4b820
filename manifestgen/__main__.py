"""Manifestgen CLI entry point."""

from .cli import main

main()
