"""
Trend chart page rendering for data logger reports.
"""

# Standard Library
import dataclasses
import datetime
import logging
import os
import pathlib
import tempfile

# PIP3 modules
import reportlab.pdfgen.canvas

# local repo modules
import machine_reports as mrep
import machine_reports.config
import machine_reports.drawing
import machine_reports.records


ChartStyle = mrep.config.ChartStyle
PageGeometry = mrep.drawing.PageGeometry
TimeSeriesRecord = mrep.records.TimeSeriesRecord

DISPLAY_DATE_FORMAT = mrep.config.DISPLAY_DATE_FORMAT
TEMP_STAMP_FORMAT = mrep.config.TEMP_STAMP_FORMAT
DEFAULT_DATALOGGER_COLUMN = mrep.config.DEFAULT_DATALOGGER_COLUMN
TICK_TIME_FORMAT = "%m-%d %H:%M"
CHART_TITLE = "Datalogger Report"
NO_DATA_TEXT = "No data available"

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class PlotRect:
	x: float
	top: float
	width: float
	height: float

	@property
	def right(self) -> float:
		return self.x + self.width

	@property
	def bottom(self) -> float:
		return self.top + self.height

	def contains(self, point: tuple[float, float]) -> bool:
		return self.x <= point[0] <= self.right and self.top <= point[1] <= self.bottom


@dataclasses.dataclass
class Gridline:
	position: float
	label: str


@dataclasses.dataclass
class ChartLayout:
	plot: PlotRect
	value_min: float
	value_max: float
	time_span: float
	points: list[tuple[float, float]]
	horizontal_lines: list[Gridline]
	vertical_lines: list[Gridline]
	markers_drawn: bool


#============================================
def compute_value_range(values: list[float], style: ChartStyle | None = None) -> tuple[float, float]:
	"""
	Compute the padded value-axis range.

	A flat series gets a unit range so the projection never divides by zero.

	Args:
		values: Series values.
		style: Chart style.

	Returns:
		Tuple of (min, max).
	"""
	style = style or ChartStyle()
	if not values:
		return (0.0, 100.0)
	low = min(values)
	high = max(values)
	span = high - low
	if span < style.min_value_range:
		span = 1.0
	padding = span * style.value_padding_ratio
	return (low - padding, high + padding)


#============================================
def compute_time_span(
	start: datetime.datetime,
	end: datetime.datetime,
	style: ChartStyle | None = None,
) -> float:
	"""
	Compute the time-axis span in seconds.

	Args:
		start: Window start.
		end: Window end.
		style: Chart style.

	Returns:
		Span in seconds, at least the style minimum.
	"""
	style = style or ChartStyle()
	span = (end - start).total_seconds()
	if span < style.min_time_span:
		return style.min_time_span
	return span


#============================================
def compute_plot_rect(chart_x: float, chart_top: float, chart_width: float, style: ChartStyle) -> PlotRect:
	return PlotRect(
		x=chart_x + style.plot_margin_left,
		top=chart_top + style.plot_margin_top,
		width=chart_width - style.plot_margin_left - style.plot_margin_right,
		height=style.chart_height - style.plot_margin_top - style.plot_margin_bottom,
	)


#============================================
def compute_horizontal_gridlines(
	plot: PlotRect,
	value_min: float,
	value_max: float,
	intervals: int,
) -> list[Gridline]:
	"""
	Compute horizontal gridlines from the top edge down.

	Args:
		plot: Plot rectangle.
		value_min: Axis minimum.
		value_max: Axis maximum.
		intervals: Number of intervals between the edges.

	Returns:
		Gridlines with their top-down y and value label.
	"""
	lines: list[Gridline] = []
	for index in range(intervals + 1):
		y = plot.top + plot.height * index / intervals
		value = value_max - (value_max - value_min) * index / intervals
		lines.append(Gridline(position=y, label=f"{value:.1f}"))
	return lines


#============================================
def compute_vertical_gridlines(
	plot: PlotRect,
	start: datetime.datetime,
	time_span: float,
	intervals: int,
) -> list[Gridline]:
	"""
	Compute vertical gridlines from the left edge across.

	Args:
		plot: Plot rectangle.
		start: Window start.
		time_span: Window length in seconds.
		intervals: Number of intervals between the edges.

	Returns:
		Gridlines with their x and timestamp label.
	"""
	lines: list[Gridline] = []
	for index in range(intervals + 1):
		x = plot.x + plot.width * index / intervals
		stamp = start + datetime.timedelta(seconds=time_span * index / intervals)
		lines.append(Gridline(position=x, label=stamp.strftime(TICK_TIME_FORMAT)))
	return lines


#============================================
def compute_gridlines(
	plot: PlotRect,
	value_range: tuple[float, float],
	start: datetime.datetime,
	time_span: float,
	style: ChartStyle | None = None,
) -> tuple[list[Gridline], list[Gridline]]:
	"""
	Compute both gridline sets.

	Args:
		plot: Plot rectangle.
		value_range: Tuple of (min, max) for the value axis.
		start: Window start.
		time_span: Window length in seconds.
		style: Chart style.

	Returns:
		Tuple of (horizontal, vertical) gridlines.
	"""
	style = style or ChartStyle()
	horizontal = compute_horizontal_gridlines(plot, value_range[0], value_range[1], style.horizontal_intervals)
	vertical = compute_vertical_gridlines(plot, start, time_span, style.vertical_intervals)
	return (horizontal, vertical)


#============================================
def project_point(
	record: TimeSeriesRecord,
	plot: PlotRect,
	value_min: float,
	value_max: float,
	start: datetime.datetime,
	time_span: float,
) -> tuple[float, float]:
	"""
	Map a sample into plot coordinates, clamped to the plot rectangle.

	Args:
		record: Time series sample.
		plot: Plot rectangle.
		value_min: Axis minimum.
		value_max: Axis maximum.
		start: Window start.
		time_span: Window length in seconds.

	Returns:
		Top-down (x, y) point inside the plot rectangle.
	"""
	x_ratio = (record.timestamp - start).total_seconds() / time_span
	y_ratio = (record.value - value_min) / (value_max - value_min)
	x = plot.x + x_ratio * plot.width
	y = plot.bottom - y_ratio * plot.height
	x = max(plot.x, min(plot.right, x))
	y = max(plot.top, min(plot.bottom, y))
	return (x, y)


#============================================
def layout_chart(
	records: list[TimeSeriesRecord],
	start: datetime.datetime,
	end: datetime.datetime,
	chart_x: float,
	chart_top: float,
	chart_width: float,
	style: ChartStyle,
) -> ChartLayout:
	"""
	Compute all chart geometry without drawing.

	Args:
		records: Samples in ascending time order.
		start: Window start.
		end: Window end.
		chart_x: Chart area left edge.
		chart_top: Chart area top offset.
		chart_width: Chart area width.
		style: Chart style.

	Returns:
		ChartLayout.
	"""
	plot = compute_plot_rect(chart_x, chart_top, chart_width, style)
	value_min, value_max = compute_value_range([record.value for record in records], style)
	time_span = compute_time_span(start, end, style)
	points = [
		project_point(record, plot, value_min, value_max, start, time_span)
		for record in records
	]
	horizontal, vertical = compute_gridlines(plot, (value_min, value_max), start, time_span, style)
	return ChartLayout(
		plot=plot,
		value_min=value_min,
		value_max=value_max,
		time_span=time_span,
		points=points,
		horizontal_lines=horizontal,
		vertical_lines=vertical,
		markers_drawn=0 < len(points) <= style.marker_limit,
	)


#============================================
def draw_info_rows(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	rows: list[tuple[str, str]],
	style: ChartStyle,
) -> None:
	"""
	Draw the label/value info box and advance the cursor past it.

	Args:
		pdf: ReportLab canvas.
		geometry: Page geometry with cursor.
		rows: (label, value) pairs.
		style: Chart style.
	"""
	value_width = geometry.content_width - style.info_label_width
	for label, value in rows:
		top = geometry.cursor_y
		mrep.drawing.draw_box(
			pdf, geometry, geometry.left, top, style.info_label_width, style.info_row_height,
			fill=style.info_label_background,
		)
		mrep.drawing.draw_box(
			pdf, geometry, geometry.left + style.info_label_width, top, value_width, style.info_row_height,
			fill="#FFFFFF", stroke=style.grid_color, line_width=style.grid_width,
		)
		mrep.drawing.draw_text_in_box(
			pdf, geometry, label, geometry.left, top, style.info_label_width, style.info_row_height,
			style.font_bold, style.info_size, "#FFFFFF", align="LEFT", padding=5.0,
		)
		mrep.drawing.draw_text_in_box(
			pdf, geometry, value, geometry.left + style.info_label_width, top, value_width,
			style.info_row_height, style.font_regular, style.info_size, style.axis_color,
			align="LEFT", padding=5.0, fit=True,
		)
		geometry.advance(style.info_row_height)


#============================================
def draw_chart_area(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	layout: ChartLayout,
	value_label: str,
	style: ChartStyle,
) -> None:
	"""
	Draw gridlines, axes, titles, and the series polyline.

	Args:
		pdf: ReportLab canvas.
		geometry: Page geometry.
		layout: Precomputed chart layout.
		value_label: Y axis title.
		style: Chart style.
	"""
	plot = layout.plot
	for line in layout.horizontal_lines:
		mrep.drawing.draw_line(
			pdf, geometry, (plot.x, line.position), (plot.right, line.position),
			style.grid_color, style.grid_width,
		)
		mrep.drawing.draw_text_in_box(
			pdf, geometry, line.label, plot.x - 5.0 - 50.0, line.position - 5.0, 50.0, 10.0,
			style.font_regular, style.tick_size, style.axis_color, align="RIGHT",
		)
	for line in layout.vertical_lines:
		mrep.drawing.draw_line(
			pdf, geometry, (line.position, plot.top), (line.position, plot.bottom),
			style.grid_color, style.grid_width,
		)
		mrep.drawing.draw_text_in_box(
			pdf, geometry, line.label, line.position - 30.0, plot.bottom + 6.0, 60.0, 12.0,
			style.font_regular, style.tick_size, style.axis_color, align="CENTER",
		)

	# axes
	mrep.drawing.draw_line(
		pdf, geometry, (plot.x, plot.top), (plot.x, plot.bottom), style.axis_color, style.axis_width,
	)
	mrep.drawing.draw_line(
		pdf, geometry, (plot.x, plot.bottom), (plot.right, plot.bottom), style.axis_color, style.axis_width,
	)

	mrep.drawing.draw_text_in_box(
		pdf, geometry, "Time", plot.x, plot.bottom + 35.0, plot.width, 12.0,
		style.font_bold, style.axis_title_size, style.axis_color, align="CENTER",
	)
	pivot = (plot.x - style.plot_margin_left + 15.0, plot.top + plot.height / 2.0)
	mrep.drawing.draw_rotated_text(
		pdf, geometry, value_label, pivot, 90.0, style.font_bold, style.axis_title_size, style.axis_color,
	)

	if layout.points:
		mrep.drawing.draw_polyline(pdf, geometry, layout.points, style.line_color, style.line_width)
		if layout.markers_drawn:
			mrep.drawing.draw_markers(pdf, geometry, layout.points, style.marker_size, style.marker_color)
	else:
		mrep.drawing.draw_text_in_box(
			pdf, geometry, NO_DATA_TEXT, plot.x, plot.top, plot.width, plot.height,
			style.font_bold, style.axis_title_size, style.axis_color, align="CENTER",
		)

	mrep.drawing.draw_box(
		pdf, geometry, plot.x, plot.top, plot.width, plot.height,
		stroke=style.axis_color, line_width=style.axis_width,
	)


#============================================
def draw_chart_page(
	pdf: reportlab.pdfgen.canvas.Canvas,
	records: list[TimeSeriesRecord],
	start: datetime.datetime,
	end: datetime.datetime,
	machine_name: str,
	value_label: str,
	generated_at: datetime.datetime,
	style: ChartStyle,
) -> ChartLayout:
	"""
	Draw the full chart page: title bar, info box, trend chart, footer.

	Args:
		pdf: ReportLab canvas sized to the chart page.
		records: Samples in ascending time order.
		start: Window start.
		end: Window end.
		machine_name: Machine name for the info box.
		value_label: Y axis title.
		generated_at: Generation timestamp for the footer.
		style: Chart style.

	Returns:
		ChartLayout used for drawing.
	"""
	geometry = PageGeometry(
		page_width=style.page_width,
		page_height=style.page_height,
		margin=style.page_margin,
		cursor_y=style.page_margin,
	)
	width = geometry.content_width

	mrep.drawing.draw_box(
		pdf, geometry, geometry.left, geometry.cursor_y, width, style.title_bar_height,
		fill=style.header_background,
	)
	mrep.drawing.draw_text_in_box(
		pdf, geometry, CHART_TITLE, geometry.left, geometry.cursor_y, width, style.title_bar_height,
		style.font_bold, style.title_size, "#FFFFFF",
	)
	geometry.advance(style.title_bar_height + style.title_bar_gap)

	draw_info_rows(
		pdf,
		geometry,
		[
			("Machine Name:", machine_name),
			("Filter Start Date:", start.strftime(DISPLAY_DATE_FORMAT)),
			("Filter End Date:", end.strftime(DISPLAY_DATE_FORMAT)),
		],
		style,
	)
	geometry.advance(style.info_gap)

	mrep.drawing.draw_text_in_box(
		pdf, geometry, "Trend Chart", geometry.left, geometry.cursor_y, width, style.section_size,
		style.font_bold, style.section_size, style.axis_color, align="LEFT",
	)
	geometry.advance(style.section_title_gap)

	layout = layout_chart(records, start, end, geometry.left, geometry.cursor_y, width, style)
	draw_chart_area(pdf, geometry, layout, value_label, style)
	geometry.advance(style.chart_height)

	footer = f"Generated on {generated_at.strftime(DISPLAY_DATE_FORMAT)} - Page 1"
	mrep.drawing.draw_text_in_box(
		pdf, geometry, footer, 0.0, style.page_height - 30.0, style.page_width, 20.0,
		style.font_regular, style.tick_size, style.axis_color,
	)
	return layout


#============================================
def build_temporary_chart_path(generated_at: datetime.datetime, directory: pathlib.Path | None = None) -> pathlib.Path:
	"""
	Reserve a unique temporary chart path for one invocation.

	Args:
		generated_at: Invocation timestamp.
		directory: Target directory, defaults to the system temp directory.

	Returns:
		Path for the chart-only PDF.
	"""
	base = directory or pathlib.Path(tempfile.gettempdir())
	prefix = f"DataloggerTrend_{generated_at.strftime(TEMP_STAMP_FORMAT)}_"
	handle, name = tempfile.mkstemp(suffix=".pdf", prefix=prefix, dir=str(base))
	os.close(handle)
	return pathlib.Path(name)


#============================================
def render_chart_pdf(
	records: list[TimeSeriesRecord],
	start: datetime.datetime,
	end: datetime.datetime,
	output_path: pathlib.Path,
	machine_name: str,
	value_label: str = DEFAULT_DATALOGGER_COLUMN,
	generated_at: datetime.datetime | None = None,
	style: ChartStyle | None = None,
) -> ChartLayout:
	"""
	Render a single-page chart PDF.

	Args:
		records: Samples in ascending time order.
		start: Window start.
		end: Window end.
		output_path: Output PDF path.
		machine_name: Machine name for the info box.
		value_label: Y axis title.
		generated_at: Generation timestamp.
		style: Chart style.

	Returns:
		ChartLayout used for drawing.
	"""
	style = style or ChartStyle()
	generated_at = generated_at or datetime.datetime.now()
	pdf = reportlab.pdfgen.canvas.Canvas(
		str(output_path),
		pagesize=(style.page_width, style.page_height),
	)
	pdf.setTitle(CHART_TITLE)
	layout = draw_chart_page(pdf, records, start, end, machine_name, value_label, generated_at, style)
	pdf.showPage()
	pdf.save()
	logger.info("Chart PDF generated: %s (%d points)", output_path, len(layout.points))
	return layout
