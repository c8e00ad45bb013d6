"""
Credential resolution utilities.

Resolves the bearer token from multiple sources:
1. Explicit value
2. Settings (``YOUWEN_TOKEN`` / .env)
3. System keyring (optional)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from youwen_enhance.config import Settings

KEYRING_SERVICE = "youwen"


def resolve_token(
    explicit_token: str | None = None,
    settings: Settings | None = None,
) -> str | None:
    """Resolve the bearer token.

    Args:
        explicit_token: Token passed by the caller
        settings: Loaded settings

    Returns:
        Resolved token or None if not found
    """
    if explicit_token:
        return explicit_token

    if settings is not None and settings.token:
        return settings.token

    return _try_keyring()


def _try_keyring() -> str | None:
    """Try to get the token from the system keyring."""
    try:
        import keyring

        return keyring.get_password(KEYRING_SERVICE, "token") or None
    except ImportError:
        # keyring not installed
        return None
    except Exception:
        # Keyring backend error (common in containers, WSL, etc.)
        return None


def get_auth_header(token: str | None) -> dict[str, str]:
    """Build the Authorization header for a token."""
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}
