"""
Transport layer - HTTP client for API communication.

Provides httpx-based transport with:
- Event-stream consumption driving the frame decoder
- Whole-operation timeout management
- Bearer token resolution
"""

from youwen_enhance.transport.auth import get_auth_header, resolve_token
from youwen_enhance.transport.http import HttpTransport

__all__ = [
    "HttpTransport",
    "get_auth_header",
    "resolve_token",
]
