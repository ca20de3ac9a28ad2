import concurrent.futures
import datetime
import pathlib
import tempfile

import pypdf
import pytest

import machine_reports.assemble
import machine_reports.service as service
import machine_reports.sources as sources


START = datetime.datetime(2024, 5, 1, 0, 0, 0)
END = datetime.datetime(2024, 5, 1, 23, 59, 59)


#============================================
def build_service(
	database: pathlib.Path,
	project_dir: pathlib.Path,
	clock,
	values: dict | None = None,
) -> service.ReportService:
	variables = sources.VariableStore(values or {"MachineName": "Press 4"})
	return service.ReportService(sources.SqliteStore(database), variables, project_dir, clock=clock)


#============================================
def page_texts(path: pathlib.Path) -> list[str]:
	reader = pypdf.PdfReader(str(path))
	return [page.extract_text() for page in reader.pages]


#============================================
def test_output_path_embeds_range_and_generation_time(tmp_path: pathlib.Path) -> None:
	path = service.build_output_path("AlarmReport", START, END, datetime.datetime(2024, 5, 2, 12, 0, 0), tmp_path)
	assert path == tmp_path / "Reports" / "AlarmReport_From_2024-05-01_000000_To_2024-05-01_235959_20240502_120000.pdf"
	recipe_path = service.build_recipe_output_path("FRM 2024/001", datetime.datetime(2024, 5, 2, 12, 0, 0), tmp_path)
	assert recipe_path.name == "Recipe_FRM_2024_001_20240502_120000.pdf"


#============================================
def test_alarm_report_three_records(logger_database: pathlib.Path, tmp_path: pathlib.Path, fixed_clock) -> None:
	"""
	Three alarms in one day, generic message column, newest first.
	"""
	report_service = build_service(logger_database, tmp_path, fixed_clock)
	try:
		outcome = report_service.run_alarm_report(START, END)
	finally:
		report_service.shutdown()
	assert outcome.state == service.ReportState.SAVED
	assert outcome.history == [
		service.ReportState.FETCHING,
		service.ReportState.BUILDING,
		service.ReportState.RENDERING,
		service.ReportState.SAVED,
	]
	assert outcome.record_count == 3
	assert outcome.output_path.name.startswith("AlarmReport_From_2024-05-01_000000_To_2024-05-01_235959_")
	assert outcome.output_path.parent == tmp_path / "Reports"
	text = page_texts(outcome.output_path)[0]
	assert "Total records: 3" in text
	assert "Press 4" in text
	assert "Line1/Motor" in text
	assert "Outside window" not in text
	assert text.index("Motor overload") < text.index("Low pressure") < text.index("Door open")
	assert "2024-05-01 20:30:00" in text


#============================================
def test_missing_store_fails_without_output(tmp_path: pathlib.Path, fixed_clock) -> None:
	report_service = build_service(tmp_path / "missing.sqlite", tmp_path, fixed_clock)
	outcome = report_service.run_alarm_report(START, END)
	report_service.shutdown()
	assert outcome.state == service.ReportState.FAILED
	assert outcome.history == [service.ReportState.FETCHING, service.ReportState.FAILED]
	assert outcome.output_path is None
	assert not (tmp_path / "Reports").exists()


#============================================
def test_query_error_fails_without_output(logger_database: pathlib.Path, tmp_path: pathlib.Path, fixed_clock) -> None:
	values = {"AlarmTable": "NoSuchTable"}
	report_service = build_service(logger_database, tmp_path, fixed_clock, values)
	outcome = report_service.run_alarm_report(START, END)
	report_service.shutdown()
	assert outcome.state == service.ReportState.FAILED
	assert outcome.error
	assert not (tmp_path / "Reports").exists()


#============================================
def test_reversed_window_renders_placeholder(logger_database: pathlib.Path, tmp_path: pathlib.Path, fixed_clock) -> None:
	report_service = build_service(logger_database, tmp_path, fixed_clock)
	outcome = report_service.run_alarm_report(END, START)
	report_service.shutdown()
	assert outcome.succeeded
	assert outcome.record_count == 0
	text = page_texts(outcome.output_path)[0]
	assert "No alarms found for the specified date range" in text
	assert "Total records: 0" in text


#============================================
def test_series_report_chart_first(
	logger_database: pathlib.Path,
	tmp_path: pathlib.Path,
	fixed_clock,
	monkeypatch,
) -> None:
	temp_dir = tmp_path / "tmp"
	temp_dir.mkdir()
	monkeypatch.setattr(tempfile, "tempdir", str(temp_dir))
	report_service = build_service(logger_database, tmp_path, fixed_clock)
	outcome = report_service.run_series_report(START, END)
	report_service.shutdown()
	assert outcome.state == service.ReportState.SAVED
	assert service.ReportState.MERGING in outcome.history
	assert outcome.chart_merged
	assert outcome.record_count == 3
	assert outcome.output_path.name.startswith("DataloggerReport_From_")
	texts = page_texts(outcome.output_path)
	assert len(texts) == 2
	assert "Trend Chart" in texts[0]
	assert "Total records" not in texts[0]
	assert "Total records: 3" in texts[1]
	assert "(See chart on page 1)" in texts[1]
	assert "18.250" in texts[1]
	assert list(temp_dir.glob("DataloggerTrend_*")) == []


#============================================
def test_merge_failure_still_saves(
	logger_database: pathlib.Path,
	tmp_path: pathlib.Path,
	fixed_clock,
	monkeypatch,
) -> None:
	def broken_merge(document_bytes: bytes, chart_path: pathlib.Path) -> bytes:
		raise ValueError("merge failed")

	monkeypatch.setattr(machine_reports.assemble, "insert_chart_page", broken_merge)
	report_service = build_service(logger_database, tmp_path, fixed_clock)
	outcome = report_service.run_series_report(START, END)
	report_service.shutdown()
	assert outcome.state == service.ReportState.SAVED
	assert not outcome.chart_merged
	texts = page_texts(outcome.output_path)
	assert len(texts) == 1
	assert "Total records: 3" in texts[0]


#============================================
def test_recipe_label_default_recipe(tmp_path: pathlib.Path, fixed_clock) -> None:
	report_service = build_service(tmp_path / "unused.sqlite", tmp_path, fixed_clock)
	outcome = report_service.run_recipe_label()
	report_service.shutdown()
	assert outcome.succeeded
	assert outcome.output_path == tmp_path / "Reports" / "Recipe_FRM-2024-001_20240502_120000.pdf"
	text = page_texts(outcome.output_path)[0]
	assert "Press 4" in text
	assert "FORMULA-2024-A" in text


#============================================
def test_output_override(logger_database: pathlib.Path, tmp_path: pathlib.Path, fixed_clock) -> None:
	values = {"OutputPath": "custom/alarms.pdf"}
	report_service = build_service(logger_database, tmp_path, fixed_clock, values)
	outcome = report_service.run_alarm_report(START, END)
	report_service.shutdown()
	assert outcome.output_path == tmp_path / "custom" / "alarms.pdf"
	assert outcome.output_path.is_file()


#============================================
def test_fire_and_forget_writes_file(logger_database: pathlib.Path, tmp_path: pathlib.Path, fixed_clock) -> None:
	report_service = build_service(logger_database, tmp_path, fixed_clock)
	assert report_service.generate_alarm_report(START, END) is None
	assert report_service.generate_recipe_label() is None
	report_service.shutdown(wait=True)
	names = sorted(path.name for path in (tmp_path / "Reports").iterdir())
	assert len(names) == 2
	assert names[0].startswith("AlarmReport_From_")
	assert names[1].startswith("Recipe_")


#============================================
def test_settings_snapshot_is_immutable(tmp_path: pathlib.Path, fixed_clock) -> None:
	report_service = build_service(tmp_path / "unused.sqlite", tmp_path, fixed_clock)
	before = report_service.snapshot()
	report_service.set_entity_name("Loader 2")
	report_service.set_primary_logo("file:///opt/logos/a.png")
	report_service.set_secondary_logo("logos/b.png")
	after = report_service.snapshot()
	report_service.shutdown()
	assert before.machine_name == "Press 4"
	assert after.machine_name == "Loader 2"
	assert after.primary_logo == pathlib.Path("/opt/logos/a.png")
	assert after.secondary_logo == tmp_path / "logos" / "b.png"
	with pytest.raises(AttributeError):
		after.machine_name = "x"


#============================================
def test_default_context_from_variables(tmp_path: pathlib.Path) -> None:
	context = service.build_context(sources.VariableStore(), tmp_path)
	assert context.machine_name == "Machine Name"
	assert context.primary_logo == tmp_path / "logos" / "logo1.png"
	assert context.secondary_logo == tmp_path / "logos" / "logo2.png"
	assert context.locale == "en-US"
	assert context.alarm_output is None


#============================================
def test_offset_aware_window_still_saves(logger_database: pathlib.Path, tmp_path: pathlib.Path, fixed_clock) -> None:
	utc = datetime.timezone.utc
	start = START.astimezone().astimezone(utc)
	end = END.astimezone().astimezone(utc)
	report_service = build_service(logger_database, tmp_path, fixed_clock)
	series = report_service.run_series_report(start, end)
	alarms = report_service.run_alarm_report(start, end)
	report_service.shutdown()
	assert series.state == service.ReportState.SAVED
	assert series.chart_merged
	assert series.record_count == 3
	assert alarms.state == service.ReportState.SAVED
	assert alarms.record_count == 3


#============================================
def test_concurrent_series_reports_keep_their_charts(
	logger_database: pathlib.Path,
	tmp_path: pathlib.Path,
	fixed_clock,
	monkeypatch,
) -> None:
	temp_dir = tmp_path / "tmp"
	temp_dir.mkdir()
	monkeypatch.setattr(tempfile, "tempdir", str(temp_dir))
	report_service = build_service(logger_database, tmp_path, fixed_clock)
	windows = [(START, END), (START, END - datetime.timedelta(seconds=1))]
	with concurrent.futures.ThreadPoolExecutor(max_workers=2) as pool:
		futures = [pool.submit(report_service.run_series_report, start, end) for start, end in windows]
		outcomes = [future.result() for future in futures]
	report_service.shutdown()
	for outcome in outcomes:
		assert outcome.state == service.ReportState.SAVED
		assert outcome.chart_merged
		assert "Trend Chart" in page_texts(outcome.output_path)[0]
	assert outcomes[0].output_path != outcomes[1].output_path
	assert list(temp_dir.glob("DataloggerTrend_*")) == []
