"""FastAPI dependency utilities."""

from fastapi import Header, HTTPException, status


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> int:
    """Return the caller's user id forwarded by the upstream gateway.

    Authentication happens before requests reach this service; the gateway
    passes the authenticated user in the ``X-User-Id`` header.
    """

    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    try:
        user_id = int(x_user_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-User-Id header",
        ) from exc
    if user_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-User-Id header",
        )
    return user_id


def get_optional_user_id(x_user_id: str | None = Header(default=None)) -> int | None:
    """Return the forwarded user id for audit fields, if any."""

    if x_user_id is None:
        return None
    try:
        return int(x_user_id)
    except ValueError:
        return None


__all__ = ["get_current_user_id", "get_optional_user_id"]
