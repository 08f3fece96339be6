"""API dependencies for dependency injection."""

import secrets
from typing import AsyncGenerator, Optional

from fastapi import Header, HTTPException, status

from driftwatch.core.config import get_settings
from driftwatch.core.reconciler import Reconciler, open_reconciler
from driftwatch.database import get_db


async def get_reconciler() -> AsyncGenerator[Reconciler, None]:
    """
    Dependency that provides a fully wired Reconciler for one request.

    Yields:
        Reconciler whose network clients are closed after the response
    """
    async with open_reconciler() as reconciler:
        yield reconciler


def verify_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """
    Require `Authorization: Bearer <CRON_SECRET>` when a secret is configured.

    Raises:
        HTTPException: 401 when the header is missing or wrong
    """
    expected = get_settings().cron_secret
    if not expected:
        return

    provided = ""
    if authorization and authorization.startswith("Bearer "):
        provided = authorization[len("Bearer "):]

    if not secrets.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


__all__ = ["get_db", "get_reconciler", "verify_cron_secret"]
