"""Volunteer profile operations against the remote store."""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import delete, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from oneclick.core.exceptions import ConflictException, NotFoundException
from oneclick.models.volunteers import skills, volunteer_skills, volunteers
from oneclick.schemas.volunteers import VolunteerProfile, VolunteerProfileUpsert
from oneclick.services.errors import remote_call
from oneclick.services.mappers import as_utc, volunteer_from_row, volunteer_values_from_upsert

logger = structlog.get_logger(__name__)

# Columns an upsert must never overwrite on conflict. Reputation columns are
# only changed by their own atomic updates.
_UPSERT_IMMUTABLE = {"id", "user_id", "created_at", "rating", "total_bookings"}


class VolunteerService:
    """Service for volunteer profiles and their skill sets."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    def _dialect_insert(self) -> Any:
        """Dialect-specific INSERT supporting ON CONFLICT clauses."""
        if self.db.bind is not None and self.db.bind.dialect.name == "sqlite":
            return sqlite.insert
        return postgresql.insert

    async def _skill_rows(self, volunteer_ids: Iterable[UUID]) -> dict[UUID, list[Mapping]]:
        """Skill rows per volunteer id."""
        ids = list(volunteer_ids)
        grouped: dict[UUID, list[Mapping]] = defaultdict(list)
        if not ids:
            return grouped

        stmt = (
            select(volunteer_skills.c.volunteer_id, skills.c.id, skills.c.name)
            .join(skills, skills.c.id == volunteer_skills.c.skill_id)
            .where(volunteer_skills.c.volunteer_id.in_(ids))
        )
        result = await self.db.execute(stmt)
        for row in result.mappings():
            grouped[row["volunteer_id"]].append(row)
        return grouped

    async def _with_skills(self, rows: list[Mapping]) -> list[VolunteerProfile]:
        skill_map = await self._skill_rows(row["id"] for row in rows)
        return [volunteer_from_row(row, skill_map.get(row["id"], [])) for row in rows]

    async def list_volunteers(self) -> list[VolunteerProfile]:
        """
        All volunteer profiles with skills, newest first.

        Returns:
            List of volunteer profiles
        """
        async with remote_call(self.db, "load_volunteers"):
            stmt = select(volunteers).order_by(volunteers.c.created_at.desc())
            result = await self.db.execute(stmt)
            return await self._with_skills(list(result.mappings()))

    async def get_volunteer(self, volunteer_id: UUID) -> VolunteerProfile | None:
        """Volunteer profile by id, or None."""
        async with remote_call(self.db, "load_volunteer", volunteer_id=str(volunteer_id)):
            result = await self.db.execute(select(volunteers).where(volunteers.c.id == volunteer_id))
            row = result.mappings().first()
            if row is None:
                return None
            return (await self._with_skills([row]))[0]

    async def get_volunteer_by_user_id(self, user_id: str) -> VolunteerProfile | None:
        """Volunteer profile owned by an identity provider user, or None."""
        async with remote_call(self.db, "load_volunteer_profile", user_id=user_id):
            result = await self.db.execute(
                select(volunteers).where(volunteers.c.user_id == user_id)
            )
            row = result.mappings().first()
            if row is None:
                return None
            return (await self._with_skills([row]))[0]

    async def require_volunteer(self, volunteer_id: UUID, back_to: str | None = None) -> VolunteerProfile:
        """
        Volunteer profile by id.

        Raises:
            NotFoundException: If no such volunteer exists
        """
        profile = await self.get_volunteer(volunteer_id)
        if profile is None:
            raise NotFoundException("Volunteer not found", back_to=back_to)
        return profile

    async def upsert_volunteer(self, user_id: str, data: VolunteerProfileUpsert) -> VolunteerProfile:
        """
        Create or replace the profile owned by ``user_id``.

        Conflicts on ``user_id`` update the existing row, so a user has at
        most one profile. Skills are not touched here; see ``replace_skills``.

        Args:
            user_id: Owning identity provider user id
            data: Complete profile from the editor

        Returns:
            Stored profile
        """
        existing = await self.get_volunteer_by_user_id(user_id)
        values = volunteer_values_from_upsert(data, user_id, existing)

        async with remote_call(self.db, "save_volunteer_profile", user_id=user_id):
            insert_stmt = self._dialect_insert()(volunteers).values(id=uuid4(), **values)
            set_ = {k: v for k, v in values.items() if k not in _UPSERT_IMMUTABLE}
            set_["updated_at"] = datetime.now(UTC)
            stmt = insert_stmt.on_conflict_do_update(
                index_elements=[volunteers.c.user_id],
                set_=set_,
            ).returning(volunteers.c.id)

            result = await self.db.execute(stmt)
            volunteer_id = result.scalar_one()
            await self.db.commit()

        logger.info(
            "volunteer_profile_saved",
            volunteer_id=str(volunteer_id),
            user_id=user_id,
            created=existing is None,
        )
        return await self.require_volunteer(volunteer_id)

    async def update_volunteer(
        self,
        volunteer_id: UUID,
        values: dict[str, Any],
        expected_updated_at: datetime | None = None,
    ) -> VolunteerProfile:
        """
        Update profile columns by id.

        Args:
            volunteer_id: Volunteer ID
            values: Column values to write
            expected_updated_at: Optional concurrency token; when given, the
                write only happens if the stored profile was not modified since

        Returns:
            Updated profile

        Raises:
            NotFoundException: If volunteer not found
            ConflictException: If the concurrency token no longer matches
        """
        async with remote_call(self.db, "update_volunteer_profile", volunteer_id=str(volunteer_id)):
            current = await self.db.execute(
                select(volunteers.c.updated_at)
                .where(volunteers.c.id == volunteer_id)
                .with_for_update()
            )
            stored_updated_at = current.scalar_one_or_none()
            if stored_updated_at is None:
                await self.db.rollback()
                raise NotFoundException("Volunteer not found")

            if expected_updated_at is not None and as_utc(stored_updated_at) != as_utc(
                expected_updated_at
            ):
                await self.db.rollback()
                logger.warning("volunteer_profile_conflict", volunteer_id=str(volunteer_id))
                raise ConflictException(
                    "Profile was changed elsewhere; reload it before saving again"
                )

            if values:
                await self.db.execute(
                    update(volunteers).where(volunteers.c.id == volunteer_id).values(**values)
                )
            await self.db.commit()

        return await self.require_volunteer(volunteer_id)

    async def replace_skills(self, volunteer_id: UUID, skill_names: list[str]) -> VolunteerProfile:
        """
        Atomically replace a volunteer's skill set.

        Unknown skill names are created; the link table is rewritten in one
        transaction. Replacing with the same names twice yields the same set.

        Args:
            volunteer_id: Volunteer ID
            skill_names: Complete list of skill names

        Returns:
            Profile with the new skills
        """
        names = list(dict.fromkeys(name.strip() for name in skill_names if name.strip()))

        async with remote_call(self.db, "update_volunteer_skills", volunteer_id=str(volunteer_id)):
            exists = await self.db.execute(
                select(volunteers.c.id).where(volunteers.c.id == volunteer_id)
            )
            if exists.scalar_one_or_none() is None:
                raise NotFoundException("Volunteer not found")

            if names:
                await self.db.execute(
                    self._dialect_insert()(skills)
                    .values([{"id": uuid4(), "name": name} for name in names])
                    .on_conflict_do_nothing(index_elements=[skills.c.name])
                )
                result = await self.db.execute(select(skills.c.id).where(skills.c.name.in_(names)))
                skill_ids = list(result.scalars())
            else:
                skill_ids = []

            await self.db.execute(
                delete(volunteer_skills).where(volunteer_skills.c.volunteer_id == volunteer_id)
            )
            if skill_ids:
                await self.db.execute(
                    insert(volunteer_skills),
                    [{"volunteer_id": volunteer_id, "skill_id": skill_id} for skill_id in skill_ids],
                )
            await self.db.commit()

        logger.info("volunteer_skills_replaced", volunteer_id=str(volunteer_id), count=len(names))
        return await self.require_volunteer(volunteer_id)

    async def increment_total_bookings(self, volunteer_id: UUID) -> VolunteerProfile:
        """Add one to the volunteer's lifetime booking counter."""
        async with remote_call(self.db, "update_booking_counter", volunteer_id=str(volunteer_id)):
            await self.db.execute(
                update(volunteers)
                .where(volunteers.c.id == volunteer_id)
                .values(total_bookings=volunteers.c.total_bookings + 1)
            )
            await self.db.commit()

        return await self.require_volunteer(volunteer_id)
