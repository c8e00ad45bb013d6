"""Command line interface for youwen-enhance."""

from youwen_enhance.cli.app import app, main

__all__ = ["app", "main"]
