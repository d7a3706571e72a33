"""Lines API endpoints: line CRUD and section registration/removal."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.models.metro import Line
from app.schemas.metro import (
    CreateLineRequest,
    CreateSectionRequest,
    LineResponse,
    UpdateLineRequest,
)
from app.services.line_service import LineService

router = APIRouter(prefix="/lines", tags=["lines"])


# ==================== Line Endpoints ====================


@router.post("", response_model=LineResponse, status_code=status.HTTP_201_CREATED)
async def create_line(
    request: CreateLineRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> Line:
    """
    Create a line with its first section.

    Args:
        request: Line name, color and the first section
        response: Response (for the Location header)
        db: Database session

    Returns:
        Created line with its two stations

    Raises:
        HTTPException: 409 if the name is taken, 404 if a station is unknown
    """
    service = LineService(db)
    line = await service.create_line(request)
    response.headers["Location"] = f"{settings.API_V1_PREFIX}/lines/{line.id}"
    return line


@router.get("", response_model=list[LineResponse])
async def list_lines(db: AsyncSession = Depends(get_db)) -> list[Line]:
    """List all lines with their ordered stations."""
    service = LineService(db)
    return await service.list_lines()


@router.get("/{line_id}", response_model=LineResponse)
async def get_line(
    line_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Line:
    """
    Get a line with its stations ordered from head to tail.

    Raises:
        HTTPException: 404 if line not found
    """
    service = LineService(db)
    return await service.get_line(line_id)


@router.patch("/{line_id}", response_model=LineResponse)
async def update_line(
    line_id: UUID,
    request: UpdateLineRequest,
    db: AsyncSession = Depends(get_db),
) -> Line:
    """
    Update line name and/or color.

    Raises:
        HTTPException: 404 if line not found, 409 if the new name is taken
    """
    service = LineService(db)
    return await service.update_line(line_id, request)


@router.delete("/{line_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_line(
    line_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Delete a line and all its sections.

    Raises:
        HTTPException: 404 if line not found
    """
    service = LineService(db)
    await service.delete_line(line_id)


# ==================== Section Endpoints ====================


@router.post("/{line_id}/sections", response_model=LineResponse, status_code=status.HTTP_201_CREATED)
async def add_section(
    line_id: UUID,
    request: CreateSectionRequest,
    db: AsyncSession = Depends(get_db),
) -> Line:
    """
    Register a section on a line.

    The section must extend the line at its head or tail, or split an existing
    section with a strictly shorter distance.

    Args:
        line_id: Line UUID
        request: Upstream station, downstream station and distance
        db: Database session

    Returns:
        Updated line

    Raises:
        HTTPException: 404 if line or station not found, 422 if the section
            cannot be placed
    """
    service = LineService(db)
    return await service.add_section(line_id, request)


@router.delete("/{line_id}/sections", status_code=status.HTTP_204_NO_CONTENT)
async def remove_section(
    line_id: UUID,
    station_id: UUID = Query(..., alias="stationId", description="Last station of the line"),
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Remove the last station of a line.

    Raises:
        HTTPException: 404 if line or station not found, 422 if the station is
            not the last one or the line has a single section
    """
    service = LineService(db)
    await service.remove_section(line_id, station_id)
