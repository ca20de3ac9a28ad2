import datetime
import pathlib

import pypdf
import pytest

import machine_reports.chart as chart
import machine_reports.config as config
import machine_reports.records as records


START = datetime.datetime(2024, 5, 1, 0, 0, 0)
END = datetime.datetime(2024, 5, 1, 12, 0, 0)
STYLE = config.ChartStyle()


#============================================
def build_plot() -> chart.PlotRect:
	"""
	Build the plot rectangle used by the chart page.
	"""
	content_width = STYLE.page_width - 2.0 * STYLE.page_margin
	return chart.compute_plot_rect(STYLE.page_margin, 200.0, content_width, STYLE)


#============================================
def build_series(values: list[float], step_minutes: int = 60) -> list[records.TimeSeriesRecord]:
	"""
	Build evenly spaced samples starting at the window start.
	"""
	return [
		records.TimeSeriesRecord(START + datetime.timedelta(minutes=step_minutes * index), value)
		for index, value in enumerate(values)
	]


#============================================
def test_value_range_padding() -> None:
	assert chart.compute_value_range([]) == (0.0, 100.0)
	low, high = chart.compute_value_range([10.0, 20.0])
	assert low == pytest.approx(9.0)
	assert high == pytest.approx(21.0)


#============================================
def test_flat_series_gets_unit_range() -> None:
	low, high = chart.compute_value_range([5.0, 5.0])
	assert low == pytest.approx(4.9)
	assert high == pytest.approx(5.1)
	assert high > low


#============================================
def test_time_span_clamped() -> None:
	assert chart.compute_time_span(START, END) == 12 * 3600.0
	assert chart.compute_time_span(START, START) == 1.0
	assert chart.compute_time_span(END, START) == 1.0


#============================================
def test_plot_rect_margins() -> None:
	plot = build_plot()
	assert plot.x == pytest.approx(STYLE.page_margin + 60.0)
	assert plot.top == pytest.approx(220.0)
	assert plot.width == pytest.approx(STYLE.page_width - 2.0 * STYLE.page_margin - 80.0)
	assert plot.height == pytest.approx(380.0 - 70.0)


#============================================
def test_gridline_counts_and_labels() -> None:
	plot = build_plot()
	horizontal, vertical = chart.compute_gridlines(plot, (0.0, 50.0), START, 12 * 3600.0)
	assert len(horizontal) == 6
	assert len(vertical) == 7
	assert horizontal[0].position == pytest.approx(plot.top)
	assert horizontal[-1].position == pytest.approx(plot.bottom)
	assert [line.label for line in horizontal] == ["50.0", "40.0", "30.0", "20.0", "10.0", "0.0"]
	assert vertical[0].position == pytest.approx(plot.x)
	assert vertical[-1].position == pytest.approx(plot.right)
	assert vertical[0].label == "05-01 00:00"
	assert vertical[3].label == "05-01 06:00"
	assert vertical[-1].label == "05-01 12:00"


#============================================
def test_points_clamped_inside_plot() -> None:
	plot = build_plot()
	samples = [
		records.TimeSeriesRecord(START - datetime.timedelta(hours=2), 500.0),
		records.TimeSeriesRecord(END + datetime.timedelta(hours=2), -500.0),
		records.TimeSeriesRecord(records.MIN_INSTANT, 0.0),
	]
	for sample in samples:
		point = chart.project_point(sample, plot, 0.0, 100.0, START, 12 * 3600.0)
		assert plot.contains(point)
	corner = chart.project_point(samples[0], plot, 0.0, 100.0, START, 12 * 3600.0)
	assert corner == (plot.x, plot.top)


#============================================
def test_flat_series_drawn_at_mid_height() -> None:
	layout = chart.layout_chart(build_series([7.0, 7.0]), START, END, STYLE.page_margin, 200.0, 510.0, STYLE)
	middle = layout.plot.top + layout.plot.height / 2.0
	assert [point[1] for point in layout.points] == pytest.approx([middle, middle])
	assert layout.markers_drawn


#============================================
def test_markers_suppressed_above_limit() -> None:
	many = build_series([float(index % 7) for index in range(101)], step_minutes=5)
	layout = chart.layout_chart(many, START, END, STYLE.page_margin, 200.0, 510.0, STYLE)
	assert not layout.markers_drawn
	layout = chart.layout_chart(many[:100], START, END, STYLE.page_margin, 200.0, 510.0, STYLE)
	assert layout.markers_drawn
	for point in layout.points:
		assert layout.plot.contains(point)


#============================================
def test_temporary_path_is_per_invocation(tmp_path: pathlib.Path) -> None:
	stamp = datetime.datetime(2024, 5, 2, 12, 0, 0, 1)
	first = chart.build_temporary_chart_path(stamp, tmp_path)
	second = chart.build_temporary_chart_path(stamp, tmp_path)
	assert first != second
	assert first.name.startswith("DataloggerTrend_20240502_120000_000001_")
	assert first.suffix == ".pdf"
	assert first.parent == tmp_path
	assert first.is_file()
	assert second.is_file()


#============================================
def test_render_chart_pdf(tmp_path: pathlib.Path) -> None:
	path = tmp_path / "chart.pdf"
	layout = chart.render_chart_pdf(
		build_series([12.5, 18.25, 15.0]), START, END, path, "Press 4",
		generated_at=datetime.datetime(2024, 5, 2, 12, 0, 0),
	)
	assert len(layout.points) == 3
	reader = pypdf.PdfReader(str(path))
	assert len(reader.pages) == 1
	page = reader.pages[0]
	assert float(page.mediabox.width) == pytest.approx(595.0)
	assert float(page.mediabox.height) == pytest.approx(842.0)
	text = page.extract_text()
	assert "Datalogger Report" in text
	assert "Press 4" in text
	assert "Trend Chart" in text
	assert "Generated on 2024-05-02 12:00:00 - Page 1" in text
	assert "No data available" not in text


#============================================
def test_render_empty_chart(tmp_path: pathlib.Path) -> None:
	path = tmp_path / "empty.pdf"
	layout = chart.render_chart_pdf([], START, END, path, "Press 4")
	assert layout.points == []
	assert not layout.markers_drawn
	assert (layout.value_min, layout.value_max) == (0.0, 100.0)
	text = pypdf.PdfReader(str(path)).pages[0].extract_text()
	assert "No data available" in text
