"""Line management service.

Resolves lines and stations from the database, runs section mutations through
the pure topology helpers and persists the result. Mutations of the same line
are serialized (in-process lock + row lock); different lines never wait on
each other.
"""

import uuid
from collections.abc import Sequence

import structlog
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.interfaces import ORMOption

from app.core.locks import line_locks
from app.core.telemetry import service_span
from app.helpers.section_topology import (
    SectionEdge,
    SectionTopologyError,
    insert_section,
    remove_section,
)
from app.models.metro import Line, Section
from app.schemas.metro import CreateLineRequest, CreateSectionRequest, UpdateLineRequest
from app.services.station_service import StationService

logger = structlog.get_logger(__name__)

LINE_NAME_CONFLICT_DETAIL = "Line name already exists."


def _line_load_options() -> tuple[ORMOption, ...]:
    """Eager-load sections and both station ends (needed by Line.stations)."""
    return (
        selectinload(Line.sections).selectinload(Section.upstream_station),
        selectinload(Line.sections).selectinload(Section.downstream_station),
    )


class LineService:
    """Service for managing lines and their sections."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize the line service.

        Args:
            db: Database session
        """
        self.db = db
        self.station_service = StationService(db)

    # ==================== Queries ====================

    async def get_line(self, line_id: uuid.UUID, *, for_update: bool = False) -> Line:
        """
        Get a line by ID with sections and stations loaded.

        Args:
            line_id: Line UUID
            for_update: Lock the line row until the transaction ends

        Returns:
            Line object (always refreshed from the database)

        Raises:
            HTTPException: 404 if line not found
        """
        query = (
            select(Line)
            .where(Line.id == line_id)
            .options(*_line_load_options())
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()

        result = await self.db.execute(query)

        if not (line := result.scalar_one_or_none()):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Line not found.",
            )

        return line

    async def list_lines(self) -> list[Line]:
        """List all lines, oldest first, with sections and stations loaded."""
        result = await self.db.execute(
            select(Line)
            .options(*_line_load_options())
            .order_by(Line.created_at, Line.name)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    # ==================== Line CRUD ====================

    async def create_line(self, request: CreateLineRequest) -> Line:
        """
        Create a line with its first section.

        Args:
            request: Line creation request

        Returns:
            Created line

        Raises:
            HTTPException: 409 if the name is taken, 404 if a station is unknown
        """
        await self._ensure_name_available(request.name)
        up_station = await self.station_service.get_station(request.up_station_id)
        down_station = await self.station_service.get_station(request.down_station_id)

        line = Line(name=request.name, color=request.color)
        line.sections.append(
            Section(
                upstream_station_id=up_station.id,
                downstream_station_id=down_station.id,
                distance=request.distance,
            )
        )

        self.db.add(line)
        await self._commit_line_name()

        logger.info("line_created", line_id=str(line.id), name=line.name)
        return await self.get_line(line.id)

    async def update_line(self, line_id: uuid.UUID, request: UpdateLineRequest) -> Line:
        """
        Update line metadata. Only provided fields change.

        Raises:
            HTTPException: 404 if line not found, 409 if the new name is taken
        """
        line = await self.get_line(line_id)

        if request.name is not None and request.name != line.name:
            await self._ensure_name_available(request.name)
            line.name = request.name
        if request.color is not None:
            line.color = request.color

        await self._commit_line_name()

        logger.info("line_updated", line_id=str(line_id))
        return await self.get_line(line_id)

    async def delete_line(self, line_id: uuid.UUID) -> None:
        """
        Delete a line and all its sections.

        Raises:
            HTTPException: 404 if line not found
        """
        async with line_locks.hold(line_id):
            line = await self.get_line(line_id, for_update=True)
            await self.db.delete(line)
            await self.db.commit()

        logger.info("line_deleted", line_id=str(line_id))

    # ==================== Section mutations ====================

    async def add_section(self, line_id: uuid.UUID, request: CreateSectionRequest) -> Line:
        """
        Register a section on a line (tail/head extension or mid-path split).

        Args:
            line_id: Line UUID
            request: Section to add

        Returns:
            Updated line

        Raises:
            HTTPException: 404 if line or station not found, 422 if the section
                cannot be placed
        """
        await self.station_service.get_station(request.up_station_id)
        await self.station_service.get_station(request.down_station_id)
        new_edge = SectionEdge(request.up_station_id, request.down_station_id, request.distance)

        async with line_locks.hold(line_id):
            with service_span("line.add_section", "line-service", line_id=str(line_id)) as span:
                line = await self.get_line(line_id, for_update=True)
                current = line.section_edges

                try:
                    updated = insert_section(current, new_edge)
                except SectionTopologyError as e:
                    await self.db.rollback()
                    raise self._topology_error(line_id, "add_section", e) from e

                await self._commit_section_changes(line, current, updated)
                span.set_attribute("line.section_count", len(updated))

        logger.info(
            "section_added",
            line_id=str(line_id),
            up_station_id=str(request.up_station_id),
            down_station_id=str(request.down_station_id),
            distance=request.distance,
        )
        return await self.get_line(line_id)

    async def remove_section(self, line_id: uuid.UUID, station_id: uuid.UUID) -> None:
        """
        Remove the line's last station and the section ending there.

        Args:
            line_id: Line UUID
            station_id: Station to remove (must be the line's tail)

        Raises:
            HTTPException: 404 if line or station not found, 422 if the station is
                not the tail or the line has a single section
        """
        await self.station_service.get_station(station_id)

        async with line_locks.hold(line_id):
            with service_span("line.remove_section", "line-service", line_id=str(line_id)) as span:
                line = await self.get_line(line_id, for_update=True)
                current = line.section_edges

                try:
                    updated = remove_section(current, station_id)
                except SectionTopologyError as e:
                    await self.db.rollback()
                    raise self._topology_error(line_id, "remove_section", e) from e

                await self._commit_section_changes(line, current, updated)
                span.set_attribute("line.section_count", len(updated))

        logger.info("section_removed", line_id=str(line_id), station_id=str(station_id))

    # ==================== Internals ====================

    async def _ensure_name_available(self, name: str) -> None:
        """
        Check that no line uses this name.

        Raises:
            HTTPException: 409 if the name is taken
        """
        taken = await self.db.scalar(select(Line.id).where(Line.name == name))
        if taken is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=LINE_NAME_CONFLICT_DETAIL,
            )

    async def _commit_line_name(self) -> None:
        """
        Commit, translating a lost race on the unique name into a 409.

        Raises:
            HTTPException: 409 if another request took the name first
        """
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=LINE_NAME_CONFLICT_DETAIL,
            ) from e

    async def _commit_section_changes(
        self,
        line: Line,
        current: Sequence[SectionEdge],
        updated: Sequence[SectionEdge],
    ) -> None:
        """
        Apply a section snapshot to the line and commit, rolling back on failure.

        A station checked before the line lock was taken can be deleted by the
        time the new section is flushed; the foreign key then rejects the insert.

        Raises:
            HTTPException: 404 if a referenced station no longer exists
        """
        line_id = line.id
        try:
            self._apply_section_changes(line, current, updated)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("section_commit_conflict", line_id=str(line_id), error=str(e.orig))
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Station not found.",
            ) from e
        except Exception:
            await self.db.rollback()
            raise

    @staticmethod
    def _topology_error(line_id: uuid.UUID, operation: str, error: SectionTopologyError) -> HTTPException:
        """Log a rejected section mutation and build the 422 reported to the caller."""
        logger.info("section_rejected", line_id=str(line_id), operation=operation, reason=error.code)
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=f"{error.code}: {error}",
        )

    @staticmethod
    def _apply_section_changes(
        line: Line,
        current: Sequence[SectionEdge],
        updated: Sequence[SectionEdge],
    ) -> None:
        """Persist the difference between two section snapshots onto the line."""
        current_edges = set(current)
        updated_edges = set(updated)

        for section in list(line.sections):
            if section.edge not in updated_edges:
                line.sections.remove(section)

        for edge in updated:
            if edge not in current_edges:
                line.sections.append(Section.from_edge(edge))
