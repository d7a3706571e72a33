"""
Section topology helpers for metro lines.

A line is stored as an unordered set of sections (directed edges between two
adjacent stations). These pure functions derive the single ordered station
sequence from that set and validate/apply section insertions and removals
without requiring database access.

Every function takes an immutable snapshot and returns a new tuple of sections;
the input is never mutated. Callers are responsible for serializing mutations
of the same line.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass
from typing import ClassVar

StationId = Hashable


@dataclass(frozen=True, slots=True)
class SectionEdge:
    """A directed section between two adjacent stations on a line."""

    upstream_station_id: StationId
    downstream_station_id: StationId
    distance: int

    def __post_init__(self) -> None:
        """Reject self-loops and non-positive distances."""
        if self.upstream_station_id == self.downstream_station_id:
            msg = "Upstream and downstream stations must be different"
            raise ValueError(msg)
        if isinstance(self.distance, bool) or not isinstance(self.distance, int) or self.distance <= 0:
            msg = f"Section distance must be a positive integer, got {self.distance!r}"
            raise ValueError(msg)


# ==================== Errors ====================


class SectionTopologyError(ValueError):
    """Base class for rejected section mutations."""

    code: ClassVar[str] = "section_topology_error"


class NoSharedEndpointError(SectionTopologyError):
    """New section shares no station with the line."""

    code: ClassVar[str] = "no_shared_endpoint"


class DuplicateSectionError(SectionTopologyError):
    """New section would connect two stations that are already on the line."""

    code: ClassVar[str] = "duplicate_section"


class SectionTooLongError(SectionTopologyError):
    """Split insertion distance is not shorter than the section being split."""

    code: ClassVar[str] = "section_too_long"


class NonContiguousSectionError(SectionTopologyError):
    """New section cannot be placed at the head, the tail or as a split."""

    code: ClassVar[str] = "non_contiguous"


class InvalidRemovalTargetError(SectionTopologyError):
    """Removal was requested for a station that is not the line's tail."""

    code: ClassVar[str] = "invalid_removal_target"


class MinimumSectionViolationError(SectionTopologyError):
    """Removal would leave the line without any section."""

    code: ClassVar[str] = "minimum_section_violation"


class TopologyCorruptedError(RuntimeError):
    """Stored sections do not form a single simple path.

    Not a SectionTopologyError: this is never the caller's fault and must not be
    reported as a validation failure.
    """

    code: ClassVar[str] = "topology_corrupted"


# ==================== Ordering ====================


def derive_ordered_stations(sections: Iterable[SectionEdge]) -> list[StationId]:
    """
    Derive the ordered station sequence of a line from its sections.

    Builds an upstream -> downstream adjacency mapping, finds the single station
    with no incoming edge (the head) and walks downstream until a station with
    no outgoing edge (the tail) is reached.

    Args:
        sections: The line's sections in any order

    Returns:
        Station ids from head to tail

    Raises:
        TopologyCorruptedError: If the sections are empty or do not form exactly
            one simple path (branch, merge, cycle or disconnected piece)

    Examples:
        >>> derive_ordered_stations([SectionEdge("B", "C", 3), SectionEdge("A", "B", 5)])
        ['A', 'B', 'C']
    """
    downstream_of: dict[StationId, StationId] = {}
    has_incoming: set[StationId] = set()
    count = 0

    for section in sections:
        count += 1
        upstream, downstream = section.upstream_station_id, section.downstream_station_id
        if upstream in downstream_of:
            msg = f"Station {upstream!r} has more than one downstream section"
            raise TopologyCorruptedError(msg)
        if downstream in has_incoming:
            msg = f"Station {downstream!r} has more than one upstream section"
            raise TopologyCorruptedError(msg)
        downstream_of[upstream] = downstream
        has_incoming.add(downstream)

    if count == 0:
        msg = "Line has no sections"
        raise TopologyCorruptedError(msg)

    heads = [station for station in downstream_of if station not in has_incoming]
    if len(heads) != 1:
        msg = f"Expected exactly one head station, found {len(heads)}"
        raise TopologyCorruptedError(msg)

    ordered = [heads[0]]
    while ordered[-1] in downstream_of:
        ordered.append(downstream_of[ordered[-1]])

    # Any section not reached from the head belongs to a detached cycle
    if len(ordered) != count + 1:
        msg = f"Sections are disconnected: walked {len(ordered) - 1} of {count}"
        raise TopologyCorruptedError(msg)

    return ordered


def total_distance(sections: Iterable[SectionEdge]) -> int:
    """Sum of all section distances of a line."""
    return sum(section.distance for section in sections)


# ==================== Mutations ====================


def insert_section(sections: Sequence[SectionEdge], new_section: SectionEdge) -> tuple[SectionEdge, ...]:
    """
    Insert a section into a line, splitting an existing section if needed.

    Placement rules, checked in order:

    1. At least one endpoint must already be on the line.
    2. Both endpoints may not already be on the line.
    3. ``upstream == tail`` appends; ``downstream == head`` prepends.
    4. Otherwise the known endpoint anchors a split of the section starting
       (or ending) there. The new distance must be strictly shorter than that
       section; the remainder goes to the other half.

    Args:
        sections: Current sections of the line (must form a simple path)
        new_section: Section to insert

    Returns:
        New tuple of sections; the split section (if any) is replaced by its
        two halves

    Raises:
        NoSharedEndpointError: Neither endpoint is on the line
        DuplicateSectionError: Both endpoints are already on the line
        SectionTooLongError: Split distance >= the section being split
        NonContiguousSectionError: No valid placement exists

    Examples:
        >>> line = (SectionEdge("A", "C", 10),)
        >>> [(s.upstream_station_id, s.downstream_station_id, s.distance) for s in insert_section(line, SectionEdge("A", "B", 4))]
        [('A', 'B', 4), ('B', 'C', 6)]
    """
    ordered = derive_ordered_stations(sections)
    on_line = set(ordered)
    upstream, downstream = new_section.upstream_station_id, new_section.downstream_station_id
    upstream_known = upstream in on_line
    downstream_known = downstream in on_line

    if not upstream_known and not downstream_known:
        msg = "Section must share a station with the line"
        raise NoSharedEndpointError(msg)

    if upstream_known and downstream_known:
        msg = "Both stations are already registered on the line"
        raise DuplicateSectionError(msg)

    if upstream == ordered[-1]:
        return (*sections, new_section)

    if downstream == ordered[0]:
        return (new_section, *sections)

    if upstream_known:
        target = _find_section(sections, upstream_station_id=upstream)
    else:
        target = _find_section(sections, downstream_station_id=downstream)

    if target is None:
        msg = "Section is not contiguous with the line"
        raise NonContiguousSectionError(msg)

    if new_section.distance >= target.distance:
        msg = (
            f"Section distance {new_section.distance} must be shorter than "
            f"the existing section distance {target.distance}"
        )
        raise SectionTooLongError(msg)

    remainder = target.distance - new_section.distance
    if upstream_known:
        halves = (
            SectionEdge(target.upstream_station_id, downstream, new_section.distance),
            SectionEdge(downstream, target.downstream_station_id, remainder),
        )
    else:
        halves = (
            SectionEdge(target.upstream_station_id, upstream, remainder),
            SectionEdge(upstream, target.downstream_station_id, new_section.distance),
        )

    index = sections.index(target)
    return (*sections[:index], *halves, *sections[index + 1 :])


def remove_section(sections: Sequence[SectionEdge], station_id: StationId) -> tuple[SectionEdge, ...]:
    """
    Remove the line's tail station together with the section ending there.

    Args:
        sections: Current sections of the line (must form a simple path)
        station_id: Station to remove; must be the current tail

    Returns:
        New tuple of sections without the last one

    Raises:
        MinimumSectionViolationError: The line has a single section
        InvalidRemovalTargetError: station_id is not the tail station
    """
    if len(sections) <= 1:
        msg = "A line must keep at least one section"
        raise MinimumSectionViolationError(msg)

    ordered = derive_ordered_stations(sections)
    if station_id != ordered[-1]:
        msg = "Only the last station of the line can be removed"
        raise InvalidRemovalTargetError(msg)

    return tuple(section for section in sections if section.downstream_station_id != station_id)


def _find_section(
    sections: Iterable[SectionEdge],
    *,
    upstream_station_id: StationId | None = None,
    downstream_station_id: StationId | None = None,
) -> SectionEdge | None:
    """Find the section starting at upstream_station_id or ending at downstream_station_id."""
    for section in sections:
        if upstream_station_id is not None and section.upstream_station_id == upstream_station_id:
            return section
        if downstream_station_id is not None and section.downstream_station_id == downstream_station_id:
            return section
    return None
