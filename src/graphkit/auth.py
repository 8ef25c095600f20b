"""
Credential sources and login-status helpers.
"""

from typing import Optional

import structlog

from graphkit.core.errors import GraphError, log_error
from graphkit.core.token_cache import CredentialSource, LoginStatus

logger = structlog.get_logger(__name__)


class StaticCredentialSource(CredentialSource):
    """Credential source backed by a fixed token, e.g. a long-lived page token."""

    def __init__(self, access_token: Optional[str], expires_in: Optional[int] = None):
        self.access_token = access_token
        self.expires_in = expires_in

    async def get_login_status(self) -> LoginStatus:
        if not self.access_token:
            return LoginStatus(status="unknown")
        return LoginStatus(
            status="connected",
            access_token=self.access_token,
            expires_in=self.expires_in,
        )


async def is_logged_in(source: CredentialSource) -> bool:
    """Check whether the source holds a connected session. Never raises GraphError."""
    try:
        status = await source.get_login_status()
    except GraphError as e:
        log_error(e)
        return False
    return status.connected


async def get_access_token(source: CredentialSource) -> Optional[str]:
    """Current token of a connected session, or None."""
    try:
        status = await source.get_login_status()
    except GraphError as e:
        log_error(e)
        return None
    return status.access_token if status.connected else None
