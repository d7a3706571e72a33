"""Stations API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.models.metro import Station
from app.schemas.metro import CreateStationRequest, StationDetailResponse
from app.services.station_service import StationService

router = APIRouter(prefix="/stations", tags=["stations"])


@router.post("", response_model=StationDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_station(
    request: CreateStationRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> Station:
    """Register a station."""
    service = StationService(db)
    station = await service.create_station(request)
    response.headers["Location"] = f"{settings.API_V1_PREFIX}/stations/{station.id}"
    return station


@router.get("", response_model=list[StationDetailResponse])
async def list_stations(db: AsyncSession = Depends(get_db)) -> list[Station]:
    """List all stations."""
    service = StationService(db)
    return await service.list_stations()


@router.get("/{station_id}", response_model=StationDetailResponse)
async def get_station(
    station_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Station:
    """
    Get a station by ID.

    Raises:
        HTTPException: 404 if station not found
    """
    service = StationService(db)
    return await service.get_station(station_id)


@router.delete("/{station_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_station(
    station_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Delete a station.

    Raises:
        HTTPException: 404 if station not found, 409 if a line still uses it
    """
    service = StationService(db)
    await service.delete_station(station_id)
