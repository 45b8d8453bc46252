from __future__ import annotations

from typing import Sequence

from sqlalchemy.orm import Session

from .errors import ValidationError
from .positions import SiblingScope, siblings


def reorder(session: Session, scope: SiblingScope, parent_id: str, ordered_ids: Sequence[str]) -> None:
    """Rewrite sibling positions so that ``ordered_ids[i]`` sits at position ``i``.

    ``ordered_ids`` must name every current child of ``parent_id`` exactly
    once. Partial lists, duplicates and ids from other parents are rejected
    before anything is written, so the dense ordering can never be broken by
    a stale client view. The caller is responsible for checking that the
    device owns ``parent_id`` and for holding the parent lock.

    An empty list is always rejected, even for a parent with no children
    where ``[]`` would be the complete order. There is nothing to reorder in
    that case, and the move coordinator does not send the call.
    """
    if not ordered_ids:
        raise ValidationError("ordered_ids required")
    if len(set(ordered_ids)) != len(ordered_ids):
        raise ValidationError("ordered_ids contains duplicate ids")

    current = {row.id: row for row in siblings(session, scope, parent_id)}
    if set(ordered_ids) != set(current):
        raise ValidationError(f"ordered_ids must list every one of the {len(current)} {scope.name} exactly once")

    for index, entity_id in enumerate(ordered_ids):
        row = current[entity_id]
        if row.position != index:
            row.position = index
