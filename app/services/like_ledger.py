"""
Like ledger: one Like/Dislike record per (subject, user).

Posts and comments keep their records in separate tables; ``LikeLedger``
is instantiated for one ``SubjectKind`` and hides which table and
foreign-key column it talks to.  The ledger stores and returns raw
records only.  Excluding banned actors is the aggregator's job.

Timestamp policy
----------------
``added_at`` is set when a record is created and refreshed whenever the
status changes.  Re-sending the current status changes nothing, so
repeating a like never moves the user to the front of the newest-likes
preview.
"""
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import CommentLike, LikeStatus, PostLike, SubjectKind

_LIKE_MODELS = {
    SubjectKind.POST: (PostLike, "post_id"),
    SubjectKind.COMMENT: (CommentLike, "comment_id"),
}

# Dialects with INSERT .. ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class LikeLedger:
    def __init__(self, db: AsyncSession, kind: SubjectKind) -> None:
        self.db = db
        self.kind = kind
        self.model, self._subject_attr = _LIKE_MODELS[kind]
        self._subject_col = getattr(self.model, self._subject_attr)

    async def set_status(
        self,
        subject_id: int,
        user_id: int,
        user_login: str,
        status: LikeStatus,
    ) -> None:
        """
        Record *status* for (subject, user).

        ``LikeStatus.NONE`` deletes the record.  Anything else is a single
        atomic upsert keyed on the (subject, user) unique constraint, so
        concurrent submissions resolve to the last completed write.
        """
        if status is LikeStatus.NONE:
            await self.db.execute(
                delete(self.model).where(
                    self._subject_col == subject_id,
                    self.model.user_id == user_id,
                )
            )
            return

        insert = _UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
        if insert is None:
            raise RuntimeError(
                f"like upsert is not supported on dialect {self.db.get_bind().dialect.name!r}"
            )

        stmt = insert(self.model).values(
            {
                self._subject_attr: subject_id,
                "user_id": user_id,
                "user_login": user_login,
                "status": status,
                "added_at": datetime.now(timezone.utc),
            }
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[self._subject_attr, "user_id"],
            set_={
                "status": stmt.excluded.status,
                "user_login": stmt.excluded.user_login,
                "added_at": stmt.excluded.added_at,
            },
            where=self.model.status != stmt.excluded.status,
        )
        await self.db.execute(stmt)

    async def get_viewer_status(self, subject_id: int, user_id: int | None) -> LikeStatus:
        if user_id is None:
            return LikeStatus.NONE
        result = await self.db.execute(
            select(self.model.status).where(
                self._subject_col == subject_id,
                self.model.user_id == user_id,
            )
        )
        return result.scalar_one_or_none() or LikeStatus.NONE

    def _ordered(self):
        # Newest first; id breaks ties in insertion order.  Upserts bypass the
        # identity map, so loaded records are always refreshed.
        return (
            select(self.model)
            .order_by(self.model.added_at.desc(), self.model.id.desc())
            .execution_options(populate_existing=True)
        )

    async def raw_likes_for(self, subject_id: int) -> list:
        result = await self.db.execute(self._ordered().where(self._subject_col == subject_id))
        return list(result.scalars().all())

    async def raw_likes_for_many(self, subject_ids: Iterable[int]) -> dict[int, list]:
        """Group the records of several subjects in one query, newest first."""
        ids = list(subject_ids)
        grouped: dict[int, list] = defaultdict(list)
        if not ids:
            return grouped
        result = await self.db.execute(self._ordered().where(self._subject_col.in_(ids)))
        for record in result.scalars().all():
            grouped[getattr(record, self._subject_attr)].append(record)
        return grouped

    async def delete_all_for_subject(self, subject_id: int) -> None:
        await self.delete_all_for_subjects([subject_id])

    async def delete_all_for_subjects(self, subject_ids: Sequence[int]) -> None:
        if not subject_ids:
            return
        await self.db.execute(delete(self.model).where(self._subject_col.in_(subject_ids)))

    async def delete_all_by_user(self, user_id: int) -> None:
        await self.db.execute(delete(self.model).where(self.model.user_id == user_id))

    async def clear_all(self) -> None:
        await self.db.execute(delete(self.model))
