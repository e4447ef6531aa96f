"""FastAPI dependency utilities."""

from fastapi import Header, HTTPException, status


def get_current_user_id(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> int:
    """Return the requester id forwarded by the authenticating gateway."""

    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    try:
        user_id = int(x_user_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-Id must be an integer",
        ) from exc
    if user_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-Id must be positive",
        )
    return user_id
