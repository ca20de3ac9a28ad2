"""
Report request execution: state tracking, output naming, and a worker pool.

Generation calls are fire-and-forget. Each request snapshots the service
settings into a ReportContext and runs as one unit on the pool; failures
are logged and the missing output file is the only caller-visible signal.
"""

# Standard Library
import concurrent.futures
import dataclasses
import datetime
import enum
import logging
import pathlib
import sqlite3
import threading
import typing

# local repo modules
import machine_reports as mrep
import machine_reports.assemble
import machine_reports.chart
import machine_reports.config
import machine_reports.document
import machine_reports.label
import machine_reports.records
import machine_reports.sources


ReportStyle = mrep.config.ReportStyle
ChartStyle = mrep.config.ChartStyle
LabelLayout = mrep.config.LabelLayout
RecipeDocument = mrep.records.RecipeDocument
ReportHeader = mrep.document.ReportHeader
QueryStore = mrep.sources.QueryStore
VariableStore = mrep.sources.VariableStore
ReportError = mrep.sources.ReportError

DEFAULT_LOCALE = mrep.config.DEFAULT_LOCALE
DEFAULT_MACHINE_NAME = mrep.config.DEFAULT_MACHINE_NAME
DEFAULT_PRIMARY_LOGO = mrep.config.DEFAULT_PRIMARY_LOGO
DEFAULT_SECONDARY_LOGO = mrep.config.DEFAULT_SECONDARY_LOGO
DEFAULT_ALARM_TABLE = mrep.config.DEFAULT_ALARM_TABLE
DEFAULT_DATALOGGER_TABLE = mrep.config.DEFAULT_DATALOGGER_TABLE
DEFAULT_DATALOGGER_COLUMN = mrep.config.DEFAULT_DATALOGGER_COLUMN
REPORTS_DIR_NAME = mrep.config.REPORTS_DIR_NAME
FILENAME_RANGE_FORMAT = mrep.config.FILENAME_RANGE_FORMAT
FILENAME_STAMP_FORMAT = mrep.config.FILENAME_STAMP_FORMAT

ALARM_KIND = "AlarmReport"
SERIES_KIND = "DataloggerReport"
RECIPE_KIND = "Recipe"
DEFAULT_MAX_WORKERS = 4

logger = logging.getLogger(__name__)


class ReportState(enum.Enum):
	FETCHING = "fetching"
	BUILDING = "building"
	RENDERING = "rendering"
	MERGING = "merging"
	SAVED = "saved"
	FAILED = "failed"


@dataclasses.dataclass
class ReportOutcome:
	kind: str
	state: ReportState = ReportState.FETCHING
	history: list[ReportState] = dataclasses.field(default_factory=lambda: [ReportState.FETCHING])
	output_path: pathlib.Path | None = None
	record_count: int = 0
	chart_merged: bool = False
	error: str = ""

	def advance(self, state: ReportState) -> None:
		self.state = state
		self.history.append(state)
		logger.debug("%s -> %s", self.kind, state.value)

	def fail(self, message: str) -> None:
		self.error = message
		self.advance(ReportState.FAILED)

	@property
	def succeeded(self) -> bool:
		return self.state == ReportState.SAVED


@dataclasses.dataclass(frozen=True)
class ReportContext:
	"""
	Immutable per-request settings captured when a request is submitted.
	"""
	project_dir: pathlib.Path
	machine_name: str = DEFAULT_MACHINE_NAME
	primary_logo: pathlib.Path | None = None
	secondary_logo: pathlib.Path | None = None
	locale: str = DEFAULT_LOCALE
	alarm_table: str = DEFAULT_ALARM_TABLE
	datalogger_table: str = DEFAULT_DATALOGGER_TABLE
	datalogger_column: str = DEFAULT_DATALOGGER_COLUMN
	alarm_output: pathlib.Path | None = None
	datalogger_output: pathlib.Path | None = None
	recipe_output: pathlib.Path | None = None
	report_style: ReportStyle = dataclasses.field(default_factory=ReportStyle)
	chart_style: ChartStyle = dataclasses.field(default_factory=ChartStyle)
	label_layout: LabelLayout = dataclasses.field(default_factory=LabelLayout)


#============================================
def sanitize_token(value: str) -> str:
	"""
	Sanitize a string for filenames.

	Args:
		value: Input string.

	Returns:
		Sanitized string.
	"""
	result: list[str] = []
	for char in value:
		if char.isalnum() or char in "-.":
			result.append(char)
		else:
			result.append("_")
	sanitized = "".join(result).strip("_")
	if not sanitized:
		return "recipe"
	return sanitized


#============================================
def build_output_path(
	kind: str,
	start: datetime.datetime,
	end: datetime.datetime,
	generated_at: datetime.datetime,
	project_dir: pathlib.Path,
) -> pathlib.Path:
	"""
	Build the default report path under the project Reports directory.

	Args:
		kind: File name prefix such as "AlarmReport".
		start: Filter start.
		end: Filter end.
		generated_at: Generation timestamp.
		project_dir: Project root directory.

	Returns:
		Output path.
	"""
	file_name = (
		f"{kind}_From_{start.strftime(FILENAME_RANGE_FORMAT)}"
		f"_To_{end.strftime(FILENAME_RANGE_FORMAT)}"
		f"_{generated_at.strftime(FILENAME_STAMP_FORMAT)}.pdf"
	)
	return pathlib.Path(project_dir) / REPORTS_DIR_NAME / file_name


#============================================
def build_recipe_output_path(
	recipe_code: str,
	generated_at: datetime.datetime,
	project_dir: pathlib.Path,
) -> pathlib.Path:
	file_name = f"{RECIPE_KIND}_{sanitize_token(recipe_code)}_{generated_at.strftime(FILENAME_STAMP_FORMAT)}.pdf"
	return pathlib.Path(project_dir) / REPORTS_DIR_NAME / file_name


#============================================
def build_context(variables: VariableStore, project_dir: pathlib.Path) -> ReportContext:
	"""
	Read request settings from the variable store.

	Args:
		variables: Configuration variables.
		project_dir: Project root directory.

	Returns:
		ReportContext.
	"""
	resolve = mrep.sources.resolve_project_path
	return ReportContext(
		project_dir=pathlib.Path(project_dir),
		machine_name=variables.get("MachineName", DEFAULT_MACHINE_NAME),
		primary_logo=resolve(variables.get("CustomerLogoPath", DEFAULT_PRIMARY_LOGO), project_dir),
		secondary_logo=resolve(variables.get("LastLogoPath", DEFAULT_SECONDARY_LOGO), project_dir),
		locale=variables.get("Locale", DEFAULT_LOCALE),
		alarm_table=variables.get("AlarmTable", DEFAULT_ALARM_TABLE),
		datalogger_table=variables.get("DataloggerTable", DEFAULT_DATALOGGER_TABLE),
		datalogger_column=variables.get("DataloggerColumn", DEFAULT_DATALOGGER_COLUMN),
		alarm_output=resolve(variables.get("OutputPath"), project_dir),
		datalogger_output=resolve(variables.get("DataloggerOutputPath"), project_dir),
		recipe_output=resolve(variables.get("RecipeOutputPath"), project_dir),
	)


#============================================
class ReportService:
	"""
	Entry point for alarm, data logger and recipe label generation.

	Usage:
		service = ReportService(SqliteStore(db_path), VariableStore(), project_dir)
		service.generate_alarm_report(start, end)
		service.shutdown()
	"""

	def __init__(
		self,
		store: QueryStore,
		variables: VariableStore | None = None,
		project_dir: pathlib.Path | None = None,
		max_workers: int = DEFAULT_MAX_WORKERS,
		clock: typing.Callable[[], datetime.datetime] = datetime.datetime.now,
	) -> None:
		self.store = store
		self.project_dir = pathlib.Path(project_dir or pathlib.Path.cwd())
		self._clock = clock
		self._lock = threading.Lock()
		self._context = build_context(variables or VariableStore(), self.project_dir)
		self._executor = concurrent.futures.ThreadPoolExecutor(
			max_workers=max_workers,
			thread_name_prefix="report",
		)
		logger.info("Report service initialized for %s", self.project_dir)
		logger.info("Primary logo: %s", self._context.primary_logo)
		logger.info("Secondary logo: %s", self._context.secondary_logo)

	def snapshot(self) -> ReportContext:
		with self._lock:
			return self._context

	def set_primary_logo(self, path: str) -> None:
		resolved = mrep.sources.resolve_project_path(path, self.project_dir)
		with self._lock:
			self._context = dataclasses.replace(self._context, primary_logo=resolved)
		logger.info("Primary logo path set to: %s", resolved)

	def set_secondary_logo(self, path: str) -> None:
		resolved = mrep.sources.resolve_project_path(path, self.project_dir)
		with self._lock:
			self._context = dataclasses.replace(self._context, secondary_logo=resolved)
		logger.info("Secondary logo path set to: %s", resolved)

	def set_entity_name(self, name: str) -> None:
		with self._lock:
			self._context = dataclasses.replace(self._context, machine_name=name)
		logger.info("Machine name set to: %s", name)

	#============================================
	def generate_alarm_report(self, start: datetime.datetime, end: datetime.datetime) -> None:
		self._executor.submit(self.run_alarm_report, start, end, self.snapshot())

	def generate_series_report(self, start: datetime.datetime, end: datetime.datetime) -> None:
		self._executor.submit(self.run_series_report, start, end, self.snapshot())

	def generate_recipe_label(self, recipe: RecipeDocument | None = None) -> None:
		self._executor.submit(self.run_recipe_label, recipe, self.snapshot())

	def shutdown(self, wait: bool = True) -> None:
		self._executor.shutdown(wait=wait)

	#============================================
	def _fetch(self, outcome: ReportOutcome, sql: str) -> mrep.sources.QueryResult | None:
		try:
			result = self.store.query(sql)
		except (ReportError, sqlite3.Error) as error:
			logger.error("%s query failed: %s", outcome.kind, error)
			outcome.fail(str(error))
			return None
		logger.info("%s query returned %d rows", outcome.kind, len(result.rows))
		return result

	#============================================
	def run_alarm_report(
		self,
		start: datetime.datetime,
		end: datetime.datetime,
		context: ReportContext | None = None,
	) -> ReportOutcome:
		"""
		Generate an alarm history report synchronously.

		Args:
			start: Filter start.
			end: Filter end.
			context: Request settings, defaults to the current snapshot.

		Returns:
			ReportOutcome.
		"""
		start = mrep.records.to_local_naive(start)
		end = mrep.records.to_local_naive(end)
		context = context or self.snapshot()
		outcome = ReportOutcome(kind=ALARM_KIND)
		generated_at = self._clock()
		logger.info("Generating alarm report from %s to %s", start, end)
		try:
			sql = mrep.sources.build_alarm_query(start, end, context.alarm_table)
			result = self._fetch(outcome, sql)
			if result is None:
				return outcome

			outcome.advance(ReportState.BUILDING)
			records = mrep.records.normalize_alarm_rows(result.header, result.rows, context.locale)
			outcome.record_count = len(records)
			if not records:
				logger.warning("No alarm data found for the specified date range")
			header = ReportHeader(
				title=mrep.document.ALARM_TITLE,
				machine_name=context.machine_name,
				start=start,
				end=end,
				primary_logo=context.primary_logo,
				secondary_logo=context.secondary_logo,
			)

			outcome.advance(ReportState.RENDERING)
			document_bytes = mrep.document.render_alarm_document(
				header, records, generated_at, context.report_style,
			)
			output_path = context.alarm_output or build_output_path(
				ALARM_KIND, start, end, generated_at, context.project_dir,
			)
			mrep.assemble.save_document(document_bytes, output_path)
			outcome.output_path = output_path
			outcome.advance(ReportState.SAVED)
			logger.info("Report saved: %s", output_path)
		except Exception as error:
			logger.exception("Error generating alarm report")
			outcome.fail(str(error))
		return outcome

	#============================================
	def run_series_report(
		self,
		start: datetime.datetime,
		end: datetime.datetime,
		context: ReportContext | None = None,
	) -> ReportOutcome:
		"""
		Generate a data logger report with a chart first page synchronously.

		Args:
			start: Filter start.
			end: Filter end.
			context: Request settings, defaults to the current snapshot.

		Returns:
			ReportOutcome.
		"""
		start = mrep.records.to_local_naive(start)
		end = mrep.records.to_local_naive(end)
		context = context or self.snapshot()
		outcome = ReportOutcome(kind=SERIES_KIND)
		generated_at = self._clock()
		chart_path: pathlib.Path | None = None
		logger.info("Generating datalogger report from %s to %s", start, end)
		try:
			chart_path = mrep.chart.build_temporary_chart_path(generated_at)
			sql = mrep.sources.build_series_query(
				start, end, context.datalogger_table, context.datalogger_column,
			)
			result = self._fetch(outcome, sql)
			if result is None:
				return outcome

			outcome.advance(ReportState.BUILDING)
			records = mrep.records.normalize_series_rows(result.header, result.rows, context.datalogger_column)
			outcome.record_count = len(records)
			if not records:
				logger.warning("No datalogger data found for the specified date range")
			header = ReportHeader(
				title=mrep.document.SERIES_TITLE,
				machine_name=context.machine_name,
				start=start,
				end=end,
				primary_logo=context.primary_logo,
				secondary_logo=context.secondary_logo,
			)

			outcome.advance(ReportState.RENDERING)
			chart_available = True
			try:
				mrep.chart.render_chart_pdf(
					records, start, end, chart_path, context.machine_name,
					value_label=context.datalogger_column,
					generated_at=generated_at,
					style=context.chart_style,
				)
			except (OSError, ValueError, TypeError, ArithmeticError) as error:
				logger.warning("Could not render trend chart: %s", error)
				chart_available = False
			document_bytes = mrep.document.render_series_document(
				header,
				records,
				generated_at,
				value_column=context.datalogger_column,
				chart_available=chart_available,
				style=context.report_style,
			)

			outcome.advance(ReportState.MERGING)
			output_path = context.datalogger_output or build_output_path(
				SERIES_KIND, start, end, generated_at, context.project_dir,
			)
			outcome.chart_merged = mrep.assemble.save_document(
				document_bytes,
				output_path,
				chart_path if chart_available else None,
			)
			outcome.output_path = output_path
			outcome.advance(ReportState.SAVED)
			logger.info("Report saved: %s", output_path)
		except Exception as error:
			logger.exception("Error generating datalogger report")
			outcome.fail(str(error))
		finally:
			mrep.assemble.remove_temporary(chart_path)
		return outcome

	#============================================
	def run_recipe_label(
		self,
		recipe: RecipeDocument | None = None,
		context: ReportContext | None = None,
	) -> ReportOutcome:
		"""
		Generate a recipe label synchronously.

		Args:
			recipe: Recipe to print, defaults to the placeholder recipe.
			context: Request settings, defaults to the current snapshot.

		Returns:
			ReportOutcome.
		"""
		context = context or self.snapshot()
		outcome = ReportOutcome(kind=RECIPE_KIND)
		generated_at = self._clock()
		try:
			outcome.advance(ReportState.BUILDING)
			if recipe is None:
				recipe = mrep.records.build_placeholder_recipe(context.machine_name, generated_at)
			outcome.record_count = len(recipe.parameters) + len(recipe.ingredients)

			outcome.advance(ReportState.RENDERING)
			output_path = context.recipe_output or build_recipe_output_path(
				recipe.recipe_code, generated_at, context.project_dir,
			)
			output_path.parent.mkdir(parents=True, exist_ok=True)
			mrep.label.render_recipe_label(recipe, output_path, context.label_layout, generated_at)
			outcome.output_path = output_path
			outcome.advance(ReportState.SAVED)
			logger.info("Recipe label saved: %s", output_path)
		except Exception as error:
			logger.exception("Error generating recipe label")
			outcome.fail(str(error))
		return outcome
