# backend/brandbite/api/updates.py
from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel

from brandbite.core.errors import ValidationFailed


def patch_fields(
    payload: BaseModel,
    *,
    nullable: Iterable[str] = (),
    exclude: Iterable[str] = ("id",),
) -> dict[str, Any]:
    """
    Fields the client actually sent in a PATCH body.
    An explicit null is only accepted for columns listed in `nullable`.
    """
    data = payload.model_dump(exclude_unset=True, exclude=set(exclude))
    if not data:
        raise ValidationFailed("No fields provided to update.")

    allowed = set(nullable)
    nulls = sorted(k for k, v in data.items() if v is None and k not in allowed)
    if nulls:
        raise ValidationFailed(
            "These fields cannot be null: " + ", ".join(nulls),
            code="null_not_allowed",
            fields=nulls,
        )
    return data
