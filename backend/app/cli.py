#!/usr/bin/env python3
"""CLI tool for inspecting and seeding the metro network.

Usage:
    # Register a station
    python -m app.cli create-station "Seoul Station"

    # List all stations
    python -m app.cli list-stations

    # List all lines with their terminals
    python -m app.cli list-lines

    # Show a line's stations in order
    python -m app.cli show-line <line-id>
"""

import argparse
import asyncio
import sys
import uuid

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session_factory
from app.schemas.metro import CreateStationRequest
from app.services.line_service import LineService
from app.services.station_service import StationService


async def cmd_create_station(args: argparse.Namespace, session: AsyncSession) -> int:
    """
    Register a new station.

    Args:
        args: Parsed command-line arguments
        session: Database session

    Returns:
        Exit code (0 for success, 1 for error)
    """
    station = await StationService(session).create_station(CreateStationRequest(name=args.name))

    print("✅ Created station successfully!")
    print(f"   Station ID: {station.id}")
    print(f"   Name:       {station.name}")
    return 0


async def cmd_list_stations(args: argparse.Namespace, session: AsyncSession) -> int:
    """List all stations."""
    stations = await StationService(session).list_stations()

    if not stations:
        print("No stations found")
        return 0

    print(f"Found {len(stations)} station(s):\n")
    print(f"{'Station ID':<38} Name")
    print("-" * 70)
    for station in stations:
        print(f"{station.id!s:<38} {station.name}")

    return 0


async def cmd_list_lines(args: argparse.Namespace, session: AsyncSession) -> int:
    """List all lines with their terminals and total distance."""
    lines = await LineService(session).list_lines()

    if not lines:
        print("No lines found")
        return 0

    print(f"Found {len(lines)} line(s):\n")
    print(f"{'Line ID':<38} {'Name':<20} {'Color':<14} {'Distance':>8}  Terminals")
    print("-" * 110)
    for line in lines:
        stations = line.stations
        terminals = f"{stations[0].name} → {stations[-1].name}"
        print(f"{line.id!s:<38} {line.name:<20} {line.color:<14} {line.distance:>8}  {terminals}")

    return 0


async def cmd_show_line(args: argparse.Namespace, session: AsyncSession) -> int:
    """
    Show a line's stations from head to tail.

    Args:
        args: Parsed command-line arguments (line_id)
        session: Database session

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        line_id = uuid.UUID(args.line_id)
    except ValueError:
        print(f"❌ Error: Invalid line ID: {args.line_id}", file=sys.stderr)
        return 1

    try:
        line = await LineService(session).get_line(line_id)
    except HTTPException as e:
        print(f"❌ Error: {e.detail}", file=sys.stderr)
        return 1

    print(f"{line.name} ({line.color}), total distance {line.distance}\n")
    for position, station in enumerate(line.stations, start=1):
        print(f"  {position:>3}. {station.name}")

    return 0


def main() -> int:
    """
    Main entry point for the CLI tool.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Metro network CLI tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m app.cli create-station "Yeonsinnae"
  python -m app.cli list-stations
  python -m app.cli list-lines
  python -m app.cli show-line 550e8400-e29b-41d4-a716-446655440000
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    create_station_parser = subparsers.add_parser(
        "create-station",
        help="Register a new station",
    )
    create_station_parser.add_argument("name", type=str, help="Station name")

    subparsers.add_parser("list-stations", help="List all stations")
    subparsers.add_parser("list-lines", help="List all lines")

    show_line_parser = subparsers.add_parser(
        "show-line",
        help="Show a line's stations in order",
    )
    show_line_parser.add_argument("line_id", type=str, help="Line UUID")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    command_handlers = {
        "create-station": cmd_create_station,
        "list-stations": cmd_list_stations,
        "list-lines": cmd_list_lines,
        "show-line": cmd_show_line,
    }

    if handler := command_handlers.get(args.command):

        async def run_with_session() -> int:
            async with get_session_factory()() as session:
                try:
                    return await handler(args, session)
                except Exception as e:
                    print(f"❌ Unexpected error: {e}", file=sys.stderr)
                    return 1

        return asyncio.run(run_with_session())

    print(f"❌ Unknown command: {args.command}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
