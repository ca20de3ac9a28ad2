"""
CLI entry points for report generation.
"""

# Standard Library
import argparse
import datetime
import logging
import pathlib
import time

# local repo modules
import machine_reports as mrep
import machine_reports.records
import machine_reports.service
import machine_reports.sources


ReportService = mrep.service.ReportService
ReportOutcome = mrep.service.ReportOutcome
SqliteStore = mrep.sources.SqliteStore
VariableStore = mrep.sources.VariableStore

REPORT_KINDS = ("alarms", "series", "recipe")
OUTPUT_VARIABLES = {
	"alarms": "OutputPath",
	"series": "DataloggerOutputPath",
	"recipe": "RecipeOutputPath",
}
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


#============================================
def parse_datetime(value: str) -> datetime.datetime:
	"""
	Parse an ISO date or datetime argument.

	Args:
		value: Text like "2024-05-01" or "2024-05-01T08:30:00+02:00".

	Returns:
		Naive datetime in local time.
	"""
	try:
		parsed = datetime.datetime.fromisoformat(value.strip())
	except ValueError as error:
		raise argparse.ArgumentTypeError(f"Invalid date/time: {value}") from error
	return mrep.records.to_local_naive(parsed)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Generate machine alarm, data logger and recipe PDF reports.")
	parser.add_argument("kind", choices=REPORT_KINDS, help="Report to generate.")

	range_group = parser.add_argument_group("Date range")
	range_group.add_argument("-s", "--start", dest="start", type=parse_datetime, default=None, help="Filter start (ISO format).")
	range_group.add_argument("-e", "--end", dest="end", type=parse_datetime, default=None, help="Filter end (ISO format).")

	source_group = parser.add_argument_group("Sources")
	source_group.add_argument("-d", "--database", dest="database", default=None, help="SQLite logger database path.")
	source_group.add_argument("-c", "--config", dest="config_path", default=None, help="JSON file with report variables.")
	source_group.add_argument("-j", "--recipe-json", dest="recipe_json", default=None, help="Recipe JSON file for the label.")
	source_group.add_argument("-p", "--project-dir", dest="project_dir", default=".", help="Project root directory.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", default=None, help="Output PDF path.")
	output_group.add_argument("--primary-logo", dest="primary_logo", default=None, help="Left header logo path.")
	output_group.add_argument("--secondary-logo", dest="secondary_logo", default=None, help="Right header logo path.")
	output_group.add_argument("-m", "--machine-name", dest="machine_name", default=None, help="Machine name shown in the header.")
	output_group.add_argument("-l", "--locale", dest="locale", default=None, help="Locale id for alarm messages.")

	behavior_group = parser.add_argument_group("Behavior")
	behavior_group.add_argument("-v", "--verbose", dest="verbose", action="store_true", help="Enable debug logging.")

	parser.set_defaults(verbose=False)

	args = parser.parse_args(argv)
	if args.kind in ("alarms", "series"):
		if args.start is None or args.end is None:
			parser.error(f"{args.kind} requires --start and --end")
		if args.database is None:
			parser.error(f"{args.kind} requires --database")
	return args


#============================================
def build_variables(args: argparse.Namespace) -> VariableStore:
	"""
	Build the variable store from the config file and CLI overrides.

	Args:
		args: Parsed argparse namespace.

	Returns:
		VariableStore.
	"""
	variables = VariableStore()
	if args.config_path:
		variables = VariableStore.from_json(pathlib.Path(args.config_path))
	if args.machine_name:
		variables.set("MachineName", args.machine_name)
	if args.locale:
		variables.set("Locale", args.locale)
	if args.output_path:
		variables.set(OUTPUT_VARIABLES[args.kind], str(pathlib.Path(args.output_path).resolve()))
	return variables


#============================================
def build_service(args: argparse.Namespace) -> ReportService:
	"""
	Build the report service for the parsed arguments.

	Args:
		args: Parsed argparse namespace.

	Returns:
		ReportService.
	"""
	project_dir = pathlib.Path(args.project_dir).resolve()
	database = pathlib.Path(args.database) if args.database else project_dir / "logger.sqlite"
	service = ReportService(
		SqliteStore(database),
		build_variables(args),
		project_dir,
		max_workers=1,
	)
	if args.primary_logo:
		service.set_primary_logo(args.primary_logo)
	if args.secondary_logo:
		service.set_secondary_logo(args.secondary_logo)
	return service


#============================================
def run_pipeline(args: argparse.Namespace) -> ReportOutcome:
	"""
	Generate the requested report and print a summary.

	Args:
		args: Parsed argparse namespace.

	Returns:
		ReportOutcome.
	"""
	print(f"Report: {args.kind}")
	print(f"Project directory: {args.project_dir}")
	if args.database:
		print(f"Database: {args.database}")
	if args.start is not None:
		print(f"Start: {args.start}")
	if args.end is not None:
		print(f"End: {args.end}")

	start_time = time.perf_counter()
	service = build_service(args)
	try:
		if args.kind == "alarms":
			outcome = service.run_alarm_report(args.start, args.end)
		elif args.kind == "series":
			outcome = service.run_series_report(args.start, args.end)
		else:
			recipe = None
			if args.recipe_json:
				recipe = mrep.records.load_recipe_json(pathlib.Path(args.recipe_json))
			outcome = service.run_recipe_label(recipe)
	finally:
		service.shutdown()
	total_time = time.perf_counter() - start_time

	print(f"State: {outcome.state.value}")
	print(f"Records: {outcome.record_count}")
	if args.kind == "series":
		print(f"Chart merged: {outcome.chart_merged}")
	if outcome.output_path is not None:
		print(f"Output PDF: {outcome.output_path}")
	print(f"Timing: total={total_time:.2f}s")
	return outcome


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	level = logging.DEBUG if args.verbose else logging.INFO
	logging.basicConfig(level=level, format=LOG_FORMAT)
	outcome = run_pipeline(args)
	if not outcome.succeeded:
		print(f"Report failed: {outcome.error}")
		raise SystemExit(1)
