"""Translate service exceptions into HTTP errors."""

from fastapi import HTTPException, status


def http_error(exc: Exception) -> HTTPException:
    """Map a service exception to an ``HTTPException``.

    ``PermissionError`` becomes 403, a ``ValueError`` whose message says
    something was not found becomes 404 and any other ``ValueError``
    becomes 400.
    """
    detail = str(exc)
    if isinstance(exc, PermissionError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
    if "not found" in detail:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
