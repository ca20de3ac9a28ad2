import datetime
import pathlib
import sqlite3

import pytest

import machine_reports.sources as sources


START = datetime.datetime(2024, 5, 1, 0, 0, 0)
END = datetime.datetime(2024, 5, 1, 23, 59, 59)


#============================================
def test_resolve_project_path_variants(tmp_path: pathlib.Path) -> None:
	assert sources.resolve_project_path("", tmp_path) is None
	assert sources.resolve_project_path(None, tmp_path) is None
	assert sources.resolve_project_path("logos/logo1.png", tmp_path) == tmp_path / "logos" / "logo1.png"
	assert sources.resolve_project_path("/opt/logo.png", tmp_path) == pathlib.Path("/opt/logo.png")
	assert sources.resolve_project_path("file:///opt/my%20logo.png", tmp_path) == pathlib.Path("/opt/my logo.png")
	windows = sources.resolve_project_path("file:///C:/Logos/logo.png", tmp_path)
	assert str(windows) == "C:/Logos/logo.png"


#============================================
def test_variable_store_defaults(tmp_path: pathlib.Path) -> None:
	variables = sources.VariableStore({"MachineName": "Press 4", "OutputPath": "", "Count": 3, "Skip": None})
	assert variables.get("MachineName", "x") == "Press 4"
	assert variables.get("OutputPath", "fallback") == "fallback"
	assert variables.get("Missing", "fallback") == "fallback"
	assert variables.get("Count") == "3"
	assert variables.get("Skip") == ""
	variables.set("Locale", "it-IT")
	assert variables.get("Locale") == "it-IT"

	path = tmp_path / "vars.json"
	path.write_text('{"MachineName": "Loader"}', encoding="utf-8")
	assert sources.VariableStore.from_json(path).get("MachineName") == "Loader"
	path.write_text("[1, 2]", encoding="utf-8")
	with pytest.raises(sources.ReportError):
		sources.VariableStore.from_json(path)


#============================================
def test_missing_database_is_unavailable(tmp_path: pathlib.Path) -> None:
	store = sources.SqliteStore(tmp_path / "missing.sqlite")
	with pytest.raises(sources.StoreUnavailableError):
		store.query("SELECT 1")
	assert not (tmp_path / "missing.sqlite").exists()


#============================================
def test_alarm_query_filters_and_orders(logger_database: pathlib.Path) -> None:
	store = sources.SqliteStore(logger_database)
	result = store.query(sources.build_alarm_query(START, END, "AlarmsEventLogger1"))
	assert result.header == ["LocalTime", "Message", "SourcePath"]
	assert [row[1] for row in result.rows] == ["Motor overload", "Low pressure", "Door open"]


#============================================
def test_reversed_window_returns_no_rows(logger_database: pathlib.Path) -> None:
	store = sources.SqliteStore(logger_database)
	result = store.query(sources.build_alarm_query(END, START, "AlarmsEventLogger1"))
	assert result.rows == []
	assert result.header == ["LocalTime", "Message", "SourcePath"]


#============================================
def test_series_query_ascending(logger_database: pathlib.Path) -> None:
	sql = sources.build_series_query(START, END, "DataLogger1", "myVarToLog")
	assert "ORDER BY LocalTimestamp ASC" in sql
	assert "'2024-05-01T00:00:00'" in sql
	result = sources.SqliteStore(logger_database).query(sql)
	assert [row[1] for row in result.rows] == [12.5, 18.25, 15.0]


#============================================
def test_unknown_table_raises_sqlite_error(logger_database: pathlib.Path) -> None:
	store = sources.SqliteStore(logger_database)
	with pytest.raises(sqlite3.Error):
		store.query(sources.build_alarm_query(START, END, "NoSuchTable"))


#============================================
def test_quote_identifier() -> None:
	assert sources.quote_identifier("DataLogger1") == '"DataLogger1"'
	assert sources.quote_identifier('a"b') == '"a""b"'
