"""
Collaborators: tabular store, variable lookup, and path resolution.
"""

# Standard Library
import dataclasses
import datetime
import json
import logging
import pathlib
import sqlite3
import typing
import urllib.parse

# local repo modules
import machine_reports as mrep
import machine_reports.config


QUERY_DATE_FORMAT = mrep.config.QUERY_DATE_FORMAT

logger = logging.getLogger(__name__)


class ReportError(Exception):
	"""Base error for report generation."""


class StoreUnavailableError(ReportError):
	"""Raised when the tabular store cannot be reached."""


@dataclasses.dataclass
class QueryResult:
	header: list[str]
	rows: list[list]


class QueryStore(typing.Protocol):
	def query(self, sql: str) -> QueryResult:
		...


#============================================
class SqliteStore:
	"""
	Read-only query access to a SQLite logger database.

	Each query opens its own connection, so one store can serve concurrent
	report requests.
	"""

	def __init__(self, path: pathlib.Path) -> None:
		self.path = pathlib.Path(path)

	def query(self, sql: str) -> QueryResult:
		"""
		Run a query and return its header and rows.

		Args:
			sql: SQL query string.

		Returns:
			QueryResult with column names and row lists.
		"""
		if not self.path.is_file():
			raise StoreUnavailableError(f"Database not found: {self.path}")
		uri = f"file:{urllib.parse.quote(str(self.path.resolve()))}?mode=ro"
		try:
			connection = sqlite3.connect(uri, uri=True)
		except sqlite3.Error as error:
			raise StoreUnavailableError(f"Cannot open database {self.path}: {error}") from error
		try:
			cursor = connection.execute(sql)
			header = [column[0] for column in cursor.description or []]
			rows = [list(row) for row in cursor.fetchall()]
		finally:
			connection.close()
		return QueryResult(header=header, rows=rows)


#============================================
class VariableStore:
	"""
	Key/string-value lookup with caller-supplied defaults.
	"""

	def __init__(self, values: dict[str, object] | None = None) -> None:
		self._values: dict[str, str] = {}
		for key, value in (values or {}).items():
			if value is not None:
				self._values[key] = str(value)

	@classmethod
	def from_json(cls, path: pathlib.Path) -> "VariableStore":
		"""
		Load variables from a flat JSON object.

		Args:
			path: JSON file path.

		Returns:
			VariableStore.
		"""
		with pathlib.Path(path).open("r", encoding="utf-8") as handle:
			data = json.load(handle)
		if not isinstance(data, dict):
			raise ReportError(f"Config file must hold a JSON object: {path}")
		return cls(data)

	def get(self, key: str, default: str = "") -> str:
		value = self._values.get(key)
		if value is None or value == "":
			return default
		return value

	def set(self, key: str, value: str) -> None:
		self._values[key] = value


#============================================
def resolve_project_path(path: str | None, project_dir: pathlib.Path) -> pathlib.Path | None:
	"""
	Convert a project-relative path or file URI into an absolute path.

	Args:
		path: Raw path, "file:///" URI, or project-relative path.
		project_dir: Project root directory.

	Returns:
		Absolute path, or None for empty input.
	"""
	if not path:
		return None
	if path.startswith("file://"):
		parsed = urllib.parse.urlparse(path)
		local = urllib.parse.unquote(parsed.path)
		# "file:///C:/dir" parses to "/C:/dir"
		if len(local) > 2 and local[0] == "/" and local[2] == ":":
			local = local[1:]
		return pathlib.Path(local)
	candidate = pathlib.Path(path)
	if candidate.is_absolute():
		return candidate
	return pathlib.Path(project_dir) / candidate


#============================================
def quote_identifier(name: str) -> str:
	"""
	Quote a SQL identifier.

	Args:
		name: Table or column name.

	Returns:
		Double-quoted identifier.
	"""
	escaped = name.replace('"', '""')
	return f'"{escaped}"'


#============================================
def build_alarm_query(
	start: datetime.datetime,
	end: datetime.datetime,
	table: str,
) -> str:
	"""
	Build the alarm history query, newest first.

	Args:
		start: Filter start.
		end: Filter end.
		table: Alarm logger table name.

	Returns:
		SQL query string.
	"""
	start_text = start.strftime(QUERY_DATE_FORMAT)
	end_text = end.strftime(QUERY_DATE_FORMAT)
	return (
		f"SELECT * FROM {quote_identifier(table)} "
		f"WHERE LocalTime >= '{start_text}' AND LocalTime <= '{end_text}' "
		"ORDER BY LocalTime DESC"
	)


#============================================
def build_series_query(
	start: datetime.datetime,
	end: datetime.datetime,
	table: str,
	value_column: str,
) -> str:
	"""
	Build the data logger query, oldest first.

	Args:
		start: Filter start.
		end: Filter end.
		table: Data logger table name.
		value_column: Logged variable column.

	Returns:
		SQL query string.
	"""
	start_text = start.strftime(QUERY_DATE_FORMAT)
	end_text = end.strftime(QUERY_DATE_FORMAT)
	return (
		f"SELECT LocalTimestamp, {quote_identifier(value_column)} FROM {quote_identifier(table)} "
		f"WHERE LocalTimestamp >= '{start_text}' AND LocalTimestamp <= '{end_text}' "
		"ORDER BY LocalTimestamp ASC"
	)
