"""
Client layer - User-facing API.

This module provides:
- EnhanceClient: Main entry point for running the enhance pipeline
- EnhanceClientBuilder: Fluent client construction
"""

from youwen_enhance.client.builder import EnhanceClientBuilder
from youwen_enhance.client.core import EnhanceClient

__all__ = [
    "EnhanceClient",
    "EnhanceClientBuilder",
]
