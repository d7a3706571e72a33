"""Metro network models: stations, lines and the sections that chain them."""

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.helpers.section_topology import SectionEdge, derive_ordered_stations, total_distance
from app.models.base import BaseModel


class Station(BaseModel):
    """Metro station. Referenced by sections, never owned by a line."""

    __tablename__ = "stations"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation of the station."""
        return f"<Station(id={self.id}, name={self.name})>"


class Line(BaseModel):
    """Metro line (e.g., "Line 2", "GTX-A").

    The line stores an unordered set of sections; the ordered station sequence
    is derived on read so it can never drift from the sections.
    """

    __tablename__ = "lines"

    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    color: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    # Relationships
    sections: Mapped[list["Section"]] = relationship(
        back_populates="line",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def section_edges(self) -> tuple[SectionEdge, ...]:
        """Immutable snapshot of the sections for the topology helpers."""
        return tuple(section.edge for section in self.sections)

    @property
    def stations(self) -> list["Station"]:
        """
        Stations of the line from head to tail.

        Requires sections and their stations to be loaded
        (see LineService.get_line).
        """
        by_id: dict[uuid.UUID, Station] = {}
        for section in self.sections:
            by_id[section.upstream_station_id] = section.upstream_station
            by_id[section.downstream_station_id] = section.downstream_station
        return [by_id[station_id] for station_id in derive_ordered_stations(self.section_edges)]

    @property
    def distance(self) -> int:
        """Total length of the line."""
        return total_distance(self.section_edges)

    def __repr__(self) -> str:
        """String representation of the line."""
        return f"<Line(id={self.id}, name={self.name}, color={self.color})>"


class Section(BaseModel):
    """Directed section between two adjacent stations on a line."""

    __tablename__ = "sections"

    line_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("lines.id", ondelete="CASCADE"),
        nullable=False,
    )
    upstream_station_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("stations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    downstream_station_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("stations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    distance: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Relationships
    line: Mapped[Line] = relationship(back_populates="sections")
    upstream_station: Mapped[Station] = relationship(foreign_keys=[upstream_station_id])
    downstream_station: Mapped[Station] = relationship(foreign_keys=[downstream_station_id])

    __table_args__ = (
        CheckConstraint("distance > 0", name="ck_sections_distance_positive"),
        CheckConstraint(
            "upstream_station_id <> downstream_station_id",
            name="ck_sections_distinct_stations",
        ),
        Index("ix_sections_line", "line_id"),
        Index("ix_sections_upstream_station", "upstream_station_id"),
        Index("ix_sections_downstream_station", "downstream_station_id"),
    )

    @property
    def edge(self) -> SectionEdge:
        """Value view of this section used by the topology helpers."""
        return SectionEdge(self.upstream_station_id, self.downstream_station_id, self.distance)

    @classmethod
    def from_edge(cls, edge: SectionEdge) -> "Section":
        """Build an unsaved section row from a topology edge."""
        return cls(
            upstream_station_id=edge.upstream_station_id,
            downstream_station_id=edge.downstream_station_id,
            distance=edge.distance,
        )

    def __repr__(self) -> str:
        """String representation of the section."""
        return (
            f"<Section(id={self.id}, line={self.line_id}, "
            f"{self.upstream_station_id}->{self.downstream_station_id}, distance={self.distance})>"
        )
