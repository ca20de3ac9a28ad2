"""
Pytest configuration for local imports and shared fixtures.
"""

# Standard Library
import datetime
import os
import sqlite3
import sys

# PIP3 modules
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()

FIXED_NOW = datetime.datetime(2024, 5, 2, 12, 0, 0)


#============================================
@pytest.fixture
def fixed_clock():
	"""
	Clock returning a constant generation time.
	"""
	return lambda: FIXED_NOW


#============================================
@pytest.fixture
def logger_database(tmp_path):
	"""
	SQLite logger database with alarm and data logger tables.

	Alarm rows carry a generic Message column and no localized column,
	and the device only through SourcePath.
	"""
	path = tmp_path / "logger.sqlite"
	connection = sqlite3.connect(path)
	connection.execute("CREATE TABLE AlarmsEventLogger1 (LocalTime TEXT, Message TEXT, SourcePath TEXT)")
	connection.executemany(
		"INSERT INTO AlarmsEventLogger1 VALUES (?, ?, ?)",
		[
			("2024-05-01T08:00:00", "Door open", "Line1/Door"),
			("2024-05-01T20:30:00.250", "Motor overload", "Line1/Motor"),
			("2024-05-01T14:15:00", "Low pressure", "Line1/Pump"),
			("2024-04-30T23:00:00", "Outside window", "Line1/Other"),
		],
	)
	connection.execute("CREATE TABLE DataLogger1 (LocalTimestamp TEXT, myVarToLog REAL)")
	connection.executemany(
		"INSERT INTO DataLogger1 VALUES (?, ?)",
		[
			("2024-05-01T06:00:00", 12.5),
			("2024-05-01T12:00:00", 18.25),
			("2024-05-01T18:00:00", 15.0),
		],
	)
	connection.commit()
	connection.close()
	return path
