"""Translate redemption failures into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from berkomunitas_api.services.rewards import (
    InsufficientBalance,
    InvalidQuantity,
    InvalidTransition,
    NotFound,
    OutOfStock,
    PrivilegeDenied,
    RedemptionError,
    TransactionFailed,
)

_STATUS_BY_ERROR: tuple[tuple[type[RedemptionError], int], ...] = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (PrivilegeDenied, status.HTTP_403_FORBIDDEN),
    (InsufficientBalance, status.HTTP_409_CONFLICT),
    (OutOfStock, status.HTTP_409_CONFLICT),
    (InvalidQuantity, 422),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (TransactionFailed, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_exception(error: RedemptionError) -> HTTPException:
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            status_code = mapped
            break
    return HTTPException(status_code=status_code, detail=error.as_dict())


__all__ = ["to_http_exception"]
