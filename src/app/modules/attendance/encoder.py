"""
Check-in payload encoding.

The scannable payload is the portal check-in URL with the token embedded
verbatim. Tokens come from secrets.token_urlsafe, so no escaping is needed.
"""

import re

CHECKIN_PATH = "/checkin"

_URL_SAFE_TOKEN = re.compile(r"^[A-Za-z0-9_-]+$")


def build_checkin_url(token: str, portal_base_url: str) -> str:
    """
    Build the check-in URL for a token.

    Args:
        token: URL-safe token string
        portal_base_url: Portal address without trailing slash (validated at startup)

    Returns:
        "<portal_base_url>/checkin?t=<token>"
    """
    if not _URL_SAFE_TOKEN.match(token):
        raise ValueError("Check-in token contains characters outside the URL-safe alphabet")
    return f"{portal_base_url}{CHECKIN_PATH}?t={token}"


def format_countdown(seconds: int) -> str:
    """Format remaining seconds as M:SS for the display badge."""
    seconds = max(0, seconds)
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"
