"""Station registry service."""

import uuid

import structlog
from fastapi import HTTPException, status
from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.metro import Section, Station
from app.schemas.metro import CreateStationRequest

logger = structlog.get_logger(__name__)


class StationService:
    """Service for managing stations."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize the station service.

        Args:
            db: Database session
        """
        self.db = db

    async def get_station(self, station_id: uuid.UUID) -> Station:
        """
        Get a station by ID.

        Raises:
            HTTPException: 404 if station not found
        """
        if not (station := await self.db.get(Station, station_id)):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Station {station_id} not found.",
            )
        return station

    async def list_stations(self) -> list[Station]:
        """List all stations, oldest first."""
        result = await self.db.execute(select(Station).order_by(Station.created_at, Station.name))
        return list(result.scalars().all())

    async def create_station(self, request: CreateStationRequest) -> Station:
        """
        Register a new station.

        Args:
            request: Station creation request

        Returns:
            Created station
        """
        station = Station(name=request.name)

        self.db.add(station)
        await self.db.commit()
        await self.db.refresh(station)

        logger.info("station_created", station_id=str(station.id), name=station.name)
        return station

    async def delete_station(self, station_id: uuid.UUID) -> None:
        """
        Delete a station that no line references.

        Raises:
            HTTPException: 404 if station not found, 409 if a section still uses it
        """
        station = await self.get_station(station_id)

        in_use = await self.db.scalar(
            select(
                exists().where(
                    or_(
                        Section.upstream_station_id == station_id,
                        Section.downstream_station_id == station_id,
                    )
                )
            )
        )
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Station is part of a line and cannot be deleted.",
            )

        await self.db.delete(station)
        await self.db.commit()

        logger.info("station_deleted", station_id=str(station_id))
