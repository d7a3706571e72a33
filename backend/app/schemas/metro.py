"""Pydantic schemas for stations, lines and sections.

Field names are snake_case in Python and camelCase on the wire
(``upStationId``, ``downStationId``, ``createdAt``).
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema that reads and writes camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


def _validate_distinct_stations(up_station_id: UUID | None, down_station_id: UUID | None) -> None:
    """
    Validate that a section connects two different stations - reusable helper.

    Raises:
        ValueError: If both station ids are equal
    """
    if up_station_id is not None and up_station_id == down_station_id:
        msg = "upStationId and downStationId must be different stations"
        raise ValueError(msg)


# ==================== Request Schemas ====================


class CreateStationRequest(CamelModel):
    """Request to register a station."""

    name: str = Field(..., min_length=1, max_length=255, description="Station name")


class CreateLineRequest(CamelModel):
    """Request to create a line together with its first section."""

    name: str = Field(..., min_length=1, max_length=255, description="Line name (globally unique)")
    color: str = Field(..., min_length=1, max_length=50, description="Display color, e.g. 'bg-red-600'")
    up_station_id: UUID = Field(..., description="Upstream terminal of the first section")
    down_station_id: UUID = Field(..., description="Downstream terminal of the first section")
    distance: int = Field(..., gt=0, description="Length of the first section")

    @model_validator(mode="after")
    def validate_stations(self) -> "CreateLineRequest":
        """Validate the first section is not a self-loop."""
        _validate_distinct_stations(self.up_station_id, self.down_station_id)
        return self


class UpdateLineRequest(CamelModel):
    """Request to update a line's metadata. Sections are managed separately."""

    name: str | None = Field(None, min_length=1, max_length=255)
    color: str | None = Field(None, min_length=1, max_length=50)


class CreateSectionRequest(CamelModel):
    """Request to register a section on an existing line."""

    up_station_id: UUID
    down_station_id: UUID
    distance: int = Field(..., gt=0)

    @model_validator(mode="after")
    def validate_stations(self) -> "CreateSectionRequest":
        """Validate the section is not a self-loop."""
        _validate_distinct_stations(self.up_station_id, self.down_station_id)
        return self


# ==================== Response Schemas ====================


class StationResponse(CamelModel):
    """Station as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class StationDetailResponse(StationResponse):
    """Station with timestamps."""

    created_at: datetime
    updated_at: datetime


class LineResponse(CamelModel):
    """Line with its stations ordered from head to tail."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    color: str
    distance: int = Field(..., description="Sum of all section distances")
    stations: list[StationResponse]
    created_at: datetime
    updated_at: datetime
