# brandbite/core/errors.py
from __future__ import annotations

from typing import Any


class BrandbiteError(Exception):
    """
    Base for business-rule failures raised by the core services.
    Rendered by the API as: {"detail": {"code", "message", **extra}}
    """

    status_code: int = 400
    code: str = "bad_request"

    def __init__(self, message: str, *, code: str | None = None, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.extra = extra

    def to_detail(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.extra}


class NotFound(BrandbiteError):
    status_code = 404
    code = "not_found"


class Forbidden(BrandbiteError):
    status_code = 403
    code = "forbidden"


class ValidationFailed(BrandbiteError):
    status_code = 400
    code = "validation_failed"


class InsufficientBalance(BrandbiteError):
    status_code = 400
    code = "insufficient_balance"


class InvalidTransition(BrandbiteError):
    status_code = 409
    code = "invalid_transition"
