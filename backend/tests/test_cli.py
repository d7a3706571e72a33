"""Tests for CLI tool.

This module tests the CLI command handlers with real database operations
using the db_session fixture (in-memory SQLite).
"""

import argparse
import sys
import uuid
from unittest.mock import patch

import pytest
from app.cli import cmd_create_station, cmd_list_lines, cmd_list_stations, cmd_show_line, main
from app.models.metro import Line, Station
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tests.helpers.metro_network import create_test_line


@pytest.fixture
async def line_2(db_session: AsyncSession, stations: dict[str, Station]) -> Line:
    """Samseong -> Gangnam (4) -> Yangjae (6)."""
    line = create_test_line(
        "Line 2",
        [stations["samseong"], stations["gangnam"], stations["yangjae"]],
        [4, 6],
    )
    db_session.add(line)
    await db_session.commit()
    return line


@pytest.mark.asyncio
async def test_cmd_create_station(db_session: AsyncSession, capsys: pytest.CaptureFixture[str]) -> None:
    """Test create-station command stores the station."""
    args = argparse.Namespace(name="Jamsil")

    exit_code = await cmd_create_station(args, db_session)

    assert exit_code == 0
    assert "Created station successfully" in capsys.readouterr().out
    result = await db_session.execute(select(Station).where(Station.name == "Jamsil"))
    assert result.scalar_one_or_none() is not None


@pytest.mark.asyncio
async def test_cmd_list_stations_empty(db_session: AsyncSession, capsys: pytest.CaptureFixture[str]) -> None:
    """Test list-stations with no stations."""
    exit_code = await cmd_list_stations(argparse.Namespace(), db_session)

    assert exit_code == 0
    assert "No stations found" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_cmd_list_stations(
    db_session: AsyncSession, stations: dict[str, Station], capsys: pytest.CaptureFixture[str]
) -> None:
    """Test list-stations prints every station."""
    exit_code = await cmd_list_stations(argparse.Namespace(), db_session)

    assert exit_code == 0
    output = capsys.readouterr().out
    assert "Found 5 station(s)" in output
    assert str(stations["seoul"].id) in output


@pytest.mark.asyncio
async def test_cmd_list_lines_empty(db_session: AsyncSession, capsys: pytest.CaptureFixture[str]) -> None:
    """Test list-lines with no lines."""
    exit_code = await cmd_list_lines(argparse.Namespace(), db_session)

    assert exit_code == 0
    assert "No lines found" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_cmd_list_lines(db_session: AsyncSession, line_2: Line, capsys: pytest.CaptureFixture[str]) -> None:
    """Test list-lines prints terminals and total distance."""
    exit_code = await cmd_list_lines(argparse.Namespace(), db_session)

    assert exit_code == 0
    output = capsys.readouterr().out
    assert "Found 1 line(s)" in output
    assert "Samseong → Yangjae" in output
    assert " 10 " in output


@pytest.mark.asyncio
async def test_cmd_show_line(db_session: AsyncSession, line_2: Line, capsys: pytest.CaptureFixture[str]) -> None:
    """Test show-line prints stations from head to tail."""
    exit_code = await cmd_show_line(argparse.Namespace(line_id=str(line_2.id)), db_session)

    assert exit_code == 0
    output = capsys.readouterr().out
    assert "total distance 10" in output
    assert output.index("Samseong") < output.index("Gangnam") < output.index("Yangjae")


@pytest.mark.asyncio
async def test_cmd_show_line_invalid_id(db_session: AsyncSession, capsys: pytest.CaptureFixture[str]) -> None:
    """Test show-line rejects a malformed id."""
    exit_code = await cmd_show_line(argparse.Namespace(line_id="not-a-uuid"), db_session)

    assert exit_code == 1
    assert "Invalid line ID" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_cmd_show_line_not_found(db_session: AsyncSession, capsys: pytest.CaptureFixture[str]) -> None:
    """Test show-line reports an unknown line."""
    exit_code = await cmd_show_line(argparse.Namespace(line_id=str(uuid.uuid4())), db_session)

    assert exit_code == 1
    assert "Line not found." in capsys.readouterr().err


def test_main_without_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    """Test that running without a command shows help and fails."""
    with patch.object(sys, "argv", ["metro-lines"]):
        assert main() == 1

    assert "Metro network CLI tool" in capsys.readouterr().out
