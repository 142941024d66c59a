"""Resolve the authenticated user forwarded by the fronting auth provider."""

from __future__ import annotations

from typing import Annotated

from fastapi import Header, HTTPException, status

USER_HEADER = "X-Authenticated-User"


async def current_user(
    x_authenticated_user: Annotated[str | None, Header(alias=USER_HEADER)] = None,
) -> str:
    """Return the user id set by the auth provider, or reject the request.

    Login and sessions are handled upstream; this service only trusts the
    header the provider attaches to authenticated requests.
    """
    user_id = (x_authenticated_user or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user_id


__all__ = ["USER_HEADER", "current_user"]
