"""Lookup helpers for reaction and bookmark targets."""
from __future__ import annotations

from sqlalchemy.orm import Session

from reeltalk.core.errors import Invalid, NotFound
from reeltalk.models import Post, Reply, TargetType

__all__ = ["coerce_target_type", "get_target", "target_model"]

_MODELS: dict[TargetType, type[Post] | type[Reply]] = {
    TargetType.POST: Post,
    TargetType.REPLY: Reply,
}


def coerce_target_type(value: TargetType | str) -> TargetType:
    """Return ``value`` as a TargetType, raising Invalid for unknown kinds."""
    try:
        return TargetType(value)
    except ValueError as err:
        raise Invalid(f"Unknown target type: {value!r}") from err


def target_model(target_type: TargetType) -> type[Post] | type[Reply]:
    """Return the ORM class holding targets of ``target_type``."""
    return _MODELS[target_type]


def get_target(session: Session, target_type: TargetType, target_id: int) -> Post | Reply:
    """Return the post or reply identified by ``(target_type, target_id)``.

    Raises:
        NotFound: If no such target exists.
    """
    target = session.get(target_model(target_type), target_id)
    if target is None:
        label = "Post" if target_type is TargetType.POST else "Reply"
        raise NotFound(f"{label} not found")
    return target
