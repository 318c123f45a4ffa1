"""
Owner scoping helpers.

SECURITY INVARIANTS:
1. Every authenticated request has g.user_id set (see decorators.require_auth)
2. Every query touching business rows filters by the owner's user_id
3. A row owned by someone else is indistinguishable from a missing row (404)
"""

from ..extensions import db
from ..validation import NotFoundError
from .concurrency import lock_for_update


def get_owned(model, row_id: int, user_id: int, *, label: str | None = None, for_update: bool = False):
    """
    Load ``model`` row ``row_id`` if it belongs to ``user_id``.

    Raises NotFoundError otherwise.
    """
    query = db.session.query(model).filter(model.id == row_id, model.user_id == user_id)
    if for_update:
        query = lock_for_update(query)
    row = query.first()
    if row is None:
        raise NotFoundError(f"{label or model.__name__} not found")
    return row
