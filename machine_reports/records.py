"""
Record types and tabular row normalization.
"""

# Standard Library
import dataclasses
import datetime
import json
import logging
import pathlib

# local repo modules
import machine_reports as mrep
import machine_reports.config


ALARM_TIME_COLUMNS = mrep.config.ALARM_TIME_COLUMNS
ALARM_MESSAGE_COLUMNS = mrep.config.ALARM_MESSAGE_COLUMNS
ALARM_DEVICE_COLUMNS = mrep.config.ALARM_DEVICE_COLUMNS
ALARM_SOURCE_PATH_COLUMNS = mrep.config.ALARM_SOURCE_PATH_COLUMNS
SERIES_TIME_COLUMNS = mrep.config.SERIES_TIME_COLUMNS
SERIES_VALUE_FALLBACK_COLUMNS = mrep.config.SERIES_VALUE_FALLBACK_COLUMNS
DEFAULT_LOCALE = mrep.config.DEFAULT_LOCALE
DEFAULT_DATALOGGER_COLUMN = mrep.config.DEFAULT_DATALOGGER_COLUMN
DEFAULT_MACHINE_NAME = mrep.config.DEFAULT_MACHINE_NAME

MIN_INSTANT = datetime.datetime.min

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class AlarmRecord:
	activation_time: datetime.datetime = MIN_INSTANT
	alarm_text: str = ""
	associated_device: str = ""


@dataclasses.dataclass
class TimeSeriesRecord:
	timestamp: datetime.datetime
	value: float


@dataclasses.dataclass
class RecipeParameter:
	name: str
	value: str
	unit: str
	set_point: str


@dataclasses.dataclass
class RecipeIngredient:
	name: str
	quantity: float
	unit: str
	lot_number: str


@dataclasses.dataclass
class RecipeDocument:
	recipe_name: str
	recipe_code: str
	batch_number: str
	product_code: str
	created: datetime.datetime
	operator_name: str
	machine_name: str
	parameters: list[RecipeParameter] = dataclasses.field(default_factory=list)
	ingredients: list[RecipeIngredient] = dataclasses.field(default_factory=list)
	notes: str = ""


ColumnResolution = dict[str, int | None]


#============================================
def find_column_index(header: list[str] | None, candidates: tuple[str, ...] | list[str]) -> int | None:
	"""
	Find the first header position matching a candidate name.

	Candidates are tried in order and compared case-insensitively, so an
	earlier candidate wins even when a later one appears first in the header.

	Args:
		header: Column names from the query result.
		candidates: Ordered candidate names.

	Returns:
		Column index, or None when no candidate is present.
	"""
	if not header:
		return None
	folded = [str(name).casefold() for name in header]
	for candidate in candidates:
		target = candidate.casefold()
		for index, name in enumerate(folded):
			if name == target:
				return index
	return None


#============================================
def localized_message_column(locale: str | None) -> str:
	"""
	Build the locale-specific message column name.

	Args:
		locale: Locale id such as "it-IT".

	Returns:
		Column name like "Message_it-IT".
	"""
	return f"Message_{locale or DEFAULT_LOCALE}"


#============================================
def resolve_alarm_columns(header: list[str] | None, locale: str | None) -> ColumnResolution:
	"""
	Resolve alarm field positions for one result header.

	Args:
		header: Column names from the query result.
		locale: Active locale id.

	Returns:
		Mapping of logical field to column index or None.
	"""
	message_index = find_column_index(header, (localized_message_column(locale),))
	if message_index is None:
		message_index = find_column_index(header, ALARM_MESSAGE_COLUMNS)
	return {
		"time": find_column_index(header, ALARM_TIME_COLUMNS),
		"message": message_index,
		"device": find_column_index(header, ALARM_DEVICE_COLUMNS),
		"source_path": find_column_index(header, ALARM_SOURCE_PATH_COLUMNS),
	}


#============================================
def resolve_series_columns(header: list[str] | None, value_column: str | None) -> ColumnResolution:
	"""
	Resolve time-series field positions for one result header.

	Args:
		header: Column names from the query result.
		value_column: Name of the logged variable column.

	Returns:
		Mapping of logical field to column index or None.
	"""
	value_candidates = (value_column or DEFAULT_DATALOGGER_COLUMN,) + SERIES_VALUE_FALLBACK_COLUMNS
	return {
		"time": find_column_index(header, SERIES_TIME_COLUMNS),
		"value": find_column_index(header, value_candidates),
	}


#============================================
def to_local_naive(value: datetime.datetime) -> datetime.datetime:
	"""
	Convert an offset-aware datetime to naive local time.
	"""
	if value.tzinfo is None:
		return value
	return value.astimezone().replace(tzinfo=None)


#============================================
def coerce_datetime(value: object, default: datetime.datetime = MIN_INSTANT) -> datetime.datetime:
	"""
	Convert a store cell into a naive datetime.

	Args:
		value: Cell value (datetime, date, ISO string or epoch seconds).
		default: Value used when the cell cannot be converted.

	Returns:
		Datetime value.
	"""
	if value is None:
		return default
	result: datetime.datetime | None = None
	if isinstance(value, datetime.datetime):
		result = value
	elif isinstance(value, datetime.date):
		result = datetime.datetime(value.year, value.month, value.day)
	elif isinstance(value, (int, float)) and not isinstance(value, bool):
		try:
			result = datetime.datetime.fromtimestamp(float(value))
		except (OverflowError, OSError, ValueError):
			return default
	elif isinstance(value, (str, bytes)):
		text = value.decode("utf-8", "replace") if isinstance(value, bytes) else value
		text = text.strip()
		if not text:
			return default
		try:
			result = datetime.datetime.fromisoformat(text)
		except ValueError:
			return default
	if result is None:
		return default
	return to_local_naive(result)


#============================================
def coerce_float(value: object, default: float = 0.0) -> float:
	"""
	Convert a store cell into a float.

	Args:
		value: Cell value.
		default: Value used when the cell cannot be converted.

	Returns:
		Float value.
	"""
	if value is None or isinstance(value, bool):
		return default
	try:
		return float(value)
	except (TypeError, ValueError):
		return default


#============================================
def coerce_text(value: object, default: str = "") -> str:
	"""
	Convert a store cell into a string.

	Args:
		value: Cell value.
		default: Value used for null cells.

	Returns:
		String value.
	"""
	if value is None:
		return default
	if isinstance(value, bytes):
		return value.decode("utf-8", "replace")
	return str(value)


#============================================
def cell_at(row: list | tuple, index: int | None) -> object:
	"""
	Return a cell by index, or None for absent columns and short rows.

	Args:
		row: Row values.
		index: Resolved column index.

	Returns:
		Cell value or None.
	"""
	if index is None or index < 0 or index >= len(row):
		return None
	return row[index]


#============================================
def normalize_alarm_rows(
	header: list[str] | None,
	rows: list[list] | None,
	locale: str | None = DEFAULT_LOCALE,
) -> list[AlarmRecord]:
	"""
	Normalize alarm logger rows into AlarmRecord entries.

	Args:
		header: Column names.
		rows: Row-major cell matrix, already ordered by the store.
		locale: Active locale id for the message column.

	Returns:
		List of AlarmRecord in row order.
	"""
	if not rows:
		return []
	columns = resolve_alarm_columns(header, locale)
	logger.debug("Alarm column resolution: %s", columns)
	records: list[AlarmRecord] = []
	for row in rows:
		device = cell_at(row, columns["device"])
		if device is None:
			device = cell_at(row, columns["source_path"])
		records.append(
			AlarmRecord(
				activation_time=coerce_datetime(cell_at(row, columns["time"])),
				alarm_text=coerce_text(cell_at(row, columns["message"])),
				associated_device=coerce_text(device),
			)
		)
	return records


#============================================
def normalize_series_rows(
	header: list[str] | None,
	rows: list[list] | None,
	value_column: str | None = DEFAULT_DATALOGGER_COLUMN,
) -> list[TimeSeriesRecord]:
	"""
	Normalize data logger rows into TimeSeriesRecord entries.

	Args:
		header: Column names.
		rows: Row-major cell matrix, ascending by time.
		value_column: Logged variable column name.

	Returns:
		List of TimeSeriesRecord in row order.
	"""
	if not rows:
		return []
	columns = resolve_series_columns(header, value_column)
	logger.debug("Series column resolution: %s", columns)
	records: list[TimeSeriesRecord] = []
	for row in rows:
		records.append(
			TimeSeriesRecord(
				timestamp=coerce_datetime(cell_at(row, columns["time"])),
				value=coerce_float(cell_at(row, columns["value"])),
			)
		)
	return records


#============================================
def build_placeholder_recipe(
	machine_name: str | None = None,
	created: datetime.datetime | None = None,
) -> RecipeDocument:
	"""
	Build the sample recipe used when no recipe source is given.

	Args:
		machine_name: Machine name to print on the label.
		created: Creation time, defaults to now.

	Returns:
		RecipeDocument.
	"""
	return RecipeDocument(
		recipe_name="FORMULA-2024-A",
		recipe_code="FRM-2024-001",
		batch_number="BATCH-20260122-001",
		product_code="PRD-45892",
		created=created or datetime.datetime.now(),
		operator_name="Operator 1",
		machine_name=machine_name or "CNC Machine #1",
		parameters=[
			RecipeParameter("Temperature", "185.5", "C", "185.0"),
			RecipeParameter("Pressure", "4.2", "bar", "4.0"),
			RecipeParameter("Speed", "1500", "RPM", "1500"),
			RecipeParameter("Flow Rate", "12.8", "L/min", "12.5"),
			RecipeParameter("Cycle Time", "45", "sec", "45"),
			RecipeParameter("Dwell Time", "5.0", "sec", "5.0"),
		],
		ingredients=[
			RecipeIngredient("Base Polymer A", 45.5, "kg", "LOT-A-2024-156"),
			RecipeIngredient("Additive B-12", 2.3, "kg", "LOT-B-2024-089"),
			RecipeIngredient("Colorant C-Red", 0.5, "kg", "LOT-C-2024-234"),
			RecipeIngredient("Stabilizer D", 1.2, "kg", "LOT-D-2024-045"),
		],
		notes="Standard production run. Quality check required after cycle 50.",
	)


#============================================
def recipe_from_dict(data: dict) -> RecipeDocument:
	"""
	Build a RecipeDocument from a JSON-style dictionary.

	Missing fields fall back to empty values rather than raising.

	Args:
		data: Parsed recipe dictionary.

	Returns:
		RecipeDocument.
	"""
	parameters = [
		RecipeParameter(
			name=coerce_text(entry.get("name")),
			value=coerce_text(entry.get("value")),
			unit=coerce_text(entry.get("unit")),
			set_point=coerce_text(entry.get("set_point")),
		)
		for entry in data.get("parameters", [])
	]
	ingredients = [
		RecipeIngredient(
			name=coerce_text(entry.get("name")),
			quantity=coerce_float(entry.get("quantity")),
			unit=coerce_text(entry.get("unit")),
			lot_number=coerce_text(entry.get("lot_number")),
		)
		for entry in data.get("ingredients", [])
	]
	return RecipeDocument(
		recipe_name=coerce_text(data.get("recipe_name")),
		recipe_code=coerce_text(data.get("recipe_code")),
		batch_number=coerce_text(data.get("batch_number")),
		product_code=coerce_text(data.get("product_code")),
		created=coerce_datetime(data.get("created"), datetime.datetime.now()),
		operator_name=coerce_text(data.get("operator_name")),
		machine_name=coerce_text(data.get("machine_name"), DEFAULT_MACHINE_NAME),
		parameters=parameters,
		ingredients=ingredients,
		notes=coerce_text(data.get("notes")),
	)


#============================================
def load_recipe_json(path: pathlib.Path) -> RecipeDocument:
	"""
	Load a recipe from a JSON file.

	Args:
		path: JSON file path.

	Returns:
		RecipeDocument.
	"""
	with path.open("r", encoding="utf-8") as handle:
		data = json.load(handle)
	return recipe_from_dict(data)
