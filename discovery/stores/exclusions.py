"""
Exclusion providers — extra ids a viewer must never be shown.

Implementations:
- StaticExclusionProvider: fixed sets (tests, callers applying their own block lists)
- SqlExclusionProvider: "not interested" marks on content or creators, persisted
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, Optional, Set

from sqlalchemy import delete, select

from ..models.catalog import ExclusionTarget
from ..utils.scores import utc_now
from .sql import SqlStoreBase
from .tables import NotInterestedRow

logger = logging.getLogger(__name__)


class StaticExclusionProvider:
    """Exclusions held in memory, keyed by viewer."""

    def __init__(
        self,
        content_ids: Optional[Dict[str, Iterable[str]]] = None,
        creator_ids: Optional[Dict[str, Iterable[str]]] = None,
    ):
        self._content = {k: set(v) for k, v in (content_ids or {}).items()}
        self._creators = {k: set(v) for k, v in (creator_ids or {}).items()}

    def excluded_content_ids(self, viewer_id: str) -> Set[str]:
        return set(self._content.get(viewer_id, ()))

    def excluded_creator_ids(self, viewer_id: str) -> Set[str]:
        return set(self._creators.get(viewer_id, ()))


class SqlExclusionProvider(SqlStoreBase):
    """
    "Not interested" marks stored in the not_interested table.

    A CONTENT mark hides that item; a CREATOR mark hides all of the creator's
    content and the creator from people suggestions.
    """

    def mark_not_interested(
        self,
        viewer_id: str,
        target_type: ExclusionTarget,
        target_id: str,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        t = NotInterestedRow.__table__
        stmt = self._insert(t).values(
            viewer_id=viewer_id,
            target_type=target_type.value,
            target_id=target_id,
            reason=reason,
            created_at=now or utc_now(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[t.c.viewer_id, t.c.target_type, t.c.target_id],
            set_={"reason": stmt.excluded.reason, "created_at": stmt.excluded.created_at},
        )
        self._run("mark_not_interested", lambda s: s.execute(stmt))
        logger.info("[exclusions] %s marked %s %s not interested", viewer_id, target_type.value, target_id)

    def clear_not_interested(self, viewer_id: str, target_type: ExclusionTarget, target_id: str) -> bool:
        t = NotInterestedRow.__table__
        stmt = delete(t).where(
            t.c.viewer_id == viewer_id,
            t.c.target_type == target_type.value,
            t.c.target_id == target_id,
        )
        return self._run("clear_not_interested", lambda s: (s.execute(stmt).rowcount or 0) > 0)

    def _targets(self, viewer_id: str, target_type: ExclusionTarget) -> Set[str]:
        t = NotInterestedRow.__table__
        stmt = select(t.c.target_id).where(
            t.c.viewer_id == viewer_id,
            t.c.target_type == target_type.value,
        )
        return self._run(f"not_interested_{target_type.value.lower()}", lambda s: set(s.scalars(stmt).all()))

    def excluded_content_ids(self, viewer_id: str) -> Set[str]:
        return self._targets(viewer_id, ExclusionTarget.CONTENT)

    def excluded_creator_ids(self, viewer_id: str) -> Set[str]:
        return self._targets(viewer_id, ExclusionTarget.CREATOR)
