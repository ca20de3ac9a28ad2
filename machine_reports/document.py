"""
Structured report documents built with ReportLab platypus.

A report is a story of flowables: header with logos, info table, an
optional trend note, the data table with its record count, and a footer
with page numbering drawn by a two-pass canvas.
"""

# Standard Library
import dataclasses
import datetime
import functools
import io
import logging
import pathlib
import xml.sax.saxutils

# PIP3 modules
import PIL.Image
import reportlab.lib.colors
import reportlab.lib.enums
import reportlab.lib.pagesizes
import reportlab.lib.styles
import reportlab.pdfgen.canvas
import reportlab.platypus

# local repo modules
import machine_reports as mrep
import machine_reports.config
import machine_reports.records


ReportStyle = mrep.config.ReportStyle
AlarmRecord = mrep.records.AlarmRecord
TimeSeriesRecord = mrep.records.TimeSeriesRecord

DISPLAY_DATE_FORMAT = mrep.config.DISPLAY_DATE_FORMAT
DEFAULT_AUTHOR = mrep.config.DEFAULT_AUTHOR
DEFAULT_DATALOGGER_COLUMN = mrep.config.DEFAULT_DATALOGGER_COLUMN
MIN_INSTANT = mrep.records.MIN_INSTANT

ALARM_TITLE = "Alarm Report"
SERIES_TITLE = "Datalogger Report"
ALARM_SECTION_TITLE = "Alarm History"
SERIES_SECTION_TITLE = "Data Table"
TREND_SECTION_TITLE = "Trend Chart"
ALARM_HEADERS = ("Activation Date/Time", "Alarm Text", "Associated Device")
SERIES_TIME_HEADER = "LocalTimestamp"
ALARM_EMPTY_TEXT = "No alarms found for the specified date range"
SERIES_EMPTY_TEXT = "No data found for the specified date range"
CHART_NOTE_TEXT = "(See chart on page 1)"
NO_CHART_TEXT = "[No chart data available]"
CELL_PADDING = 3.0

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ReportHeader:
	title: str
	machine_name: str
	start: datetime.datetime
	end: datetime.datetime
	primary_logo: pathlib.Path | None = None
	secondary_logo: pathlib.Path | None = None


#============================================
class NumberedCanvas(reportlab.pdfgen.canvas.Canvas):
	"""
	Canvas that defers page output until the page count is known.

	Each finished page state is kept, then replayed in save() with a
	"Page N of M" footer drawn on top.
	"""

	def __init__(
		self,
		*args,
		footer_prefix: str = "",
		footer_font: str = mrep.config.DEFAULT_FONT_REGULAR,
		footer_size: float = 8.0,
		footer_offset: float = 20.0,
		**kwargs,
	) -> None:
		super().__init__(*args, **kwargs)
		self._saved_page_states: list[dict] = []
		self._footer_prefix = footer_prefix
		self._footer_font = footer_font
		self._footer_size = footer_size
		self._footer_offset = footer_offset

	def showPage(self) -> None:
		self._saved_page_states.append(dict(self.__dict__))
		self._startPage()

	def save(self) -> None:
		total = len(self._saved_page_states)
		for state in self._saved_page_states:
			self.__dict__.update(state)
			self.draw_page_footer(total)
			super().showPage()
		super().save()

	def draw_page_footer(self, total_pages: int) -> None:
		text = build_footer_text(self._footer_prefix, self.getPageNumber(), total_pages)
		page_width = self._pagesize[0]
		self.saveState()
		self.setFont(self._footer_font, self._footer_size)
		self.setFillColor(reportlab.lib.colors.black)
		self.drawCentredString(page_width / 2.0, self._footer_offset, text)
		self.restoreState()


#============================================
def build_footer_text(prefix: str, page_number: int, total_pages: int) -> str:
	return f"{prefix} - Page {page_number} of {total_pages}"


#============================================
def generated_on_text(generated_at: datetime.datetime) -> str:
	return f"Generated on {generated_at.strftime(DISPLAY_DATE_FORMAT)}"


#============================================
def total_records_text(count: int) -> str:
	return f"Total records: {count}"


#============================================
def format_timestamp(value: datetime.datetime) -> str:
	"""
	Format a record timestamp for a table cell.

	Args:
		value: Timestamp, possibly the missing-value default.

	Returns:
		Display string, empty for a missing timestamp.
	"""
	if value == MIN_INSTANT:
		return ""
	return value.strftime(DISPLAY_DATE_FORMAT)


#============================================
def format_series_timestamp(value: datetime.datetime) -> str:
	if value == MIN_INSTANT:
		return ""
	return value.strftime(DISPLAY_DATE_FORMAT) + f".{value.microsecond // 1000:03d}"


#============================================
def format_series_value(value: float) -> str:
	return f"{value:.3f}"


#============================================
def alarm_table_rows(records: list[AlarmRecord]) -> list[list[str]]:
	"""
	Build the text content of the alarm table, header row first.

	Args:
		records: Alarm records in store order.

	Returns:
		Header row followed by one row per record, or one empty-text row.
	"""
	rows = [list(ALARM_HEADERS)]
	if not records:
		rows.append([ALARM_EMPTY_TEXT, "", ""])
		return rows
	for record in records:
		rows.append([
			format_timestamp(record.activation_time),
			record.alarm_text,
			record.associated_device,
		])
	return rows


#============================================
def series_table_rows(records: list[TimeSeriesRecord], value_column: str) -> list[list[str]]:
	"""
	Build the text content of the series table, header row first.

	Args:
		records: Samples in ascending time order.
		value_column: Value column header.

	Returns:
		Header row followed by one row per sample, or one empty-text row.
	"""
	rows = [[SERIES_TIME_HEADER, value_column]]
	if not records:
		rows.append([SERIES_EMPTY_TEXT, ""])
		return rows
	for record in records:
		rows.append([format_series_timestamp(record.timestamp), format_series_value(record.value)])
	return rows


#============================================
def build_paragraph_styles(style: ReportStyle) -> dict[str, reportlab.lib.styles.ParagraphStyle]:
	"""
	Build the paragraph styles used by the report story.

	Args:
		style: Report style sheet.

	Returns:
		Mapping of style name to ParagraphStyle.
	"""
	text_color = reportlab.lib.colors.HexColor(mrep.config.BODY_TEXT)
	styles = {
		"title": reportlab.lib.styles.ParagraphStyle(
			name="ReportTitle",
			fontName=style.font_bold,
			fontSize=style.title_size,
			leading=style.title_size * 1.2,
			textColor=reportlab.lib.colors.HexColor(style.header_text),
			alignment=reportlab.lib.enums.TA_CENTER,
		),
		"section": reportlab.lib.styles.ParagraphStyle(
			name="SectionTitle",
			fontName=style.font_bold,
			fontSize=style.section_size,
			leading=style.section_size * 1.2,
			textColor=text_color,
			spaceAfter=style.title_spacing,
		),
		"body": reportlab.lib.styles.ParagraphStyle(
			name="Body",
			fontName=style.font_regular,
			fontSize=style.body_size,
			leading=style.body_size * 1.2,
			textColor=text_color,
		),
		"label": reportlab.lib.styles.ParagraphStyle(
			name="InfoLabel",
			fontName=style.font_bold,
			fontSize=style.body_size,
			leading=style.body_size * 1.2,
			textColor=reportlab.lib.colors.HexColor(style.table_header_text),
		),
		"cell": reportlab.lib.styles.ParagraphStyle(
			name="Cell",
			fontName=style.font_regular,
			fontSize=style.cell_size,
			leading=style.cell_size + 2.0,
			textColor=text_color,
		),
		"empty": reportlab.lib.styles.ParagraphStyle(
			name="EmptyRow",
			fontName=style.font_italic,
			fontSize=style.cell_size,
			leading=style.cell_size + 2.0,
			textColor=text_color,
			alignment=reportlab.lib.enums.TA_CENTER,
		),
		"caption": reportlab.lib.styles.ParagraphStyle(
			name="Caption",
			fontName=style.font_italic,
			fontSize=style.caption_size,
			leading=style.caption_size * 1.2,
			textColor=text_color,
			spaceBefore=style.title_spacing,
		),
	}
	return styles


#============================================
def build_logo(path: pathlib.Path | None, style: ReportStyle) -> reportlab.platypus.Flowable | str:
	"""
	Load a logo scaled to the logo width with its aspect ratio locked.

	Args:
		path: Logo image path, or None when not configured.
		style: Report style sheet.

	Returns:
		Image flowable, or an empty string for a blank slot.
	"""
	if path is None:
		return ""
	if not path.is_file():
		logger.warning("Logo not found at: %s", path)
		return ""
	try:
		with PIL.Image.open(path) as image:
			pixel_width, pixel_height = image.size
	except OSError as error:
		logger.warning("Could not load logo %s: %s", path, error)
		return ""
	if pixel_width <= 0 or pixel_height <= 0:
		logger.warning("Logo has no pixels: %s", path)
		return ""
	width = style.logo_width
	height = width * pixel_height / pixel_width
	max_height = style.header_row_height - 2.0 * CELL_PADDING
	if height > max_height:
		width = width * max_height / height
		height = max_height
	return reportlab.platypus.Image(str(path), width=width, height=height)


#============================================
def build_header(
	header: ReportHeader,
	style: ReportStyle,
	paragraph_styles: dict[str, reportlab.lib.styles.ParagraphStyle],
) -> list[reportlab.platypus.Flowable]:
	"""
	Build the logo/title band and the info table.

	Args:
		header: Header content.
		style: Report style sheet.
		paragraph_styles: Paragraph styles.

	Returns:
		Flowables for the top of the report.
	"""
	title_cell = reportlab.platypus.Paragraph(
		xml.sax.saxutils.escape(header.title), paragraph_styles["title"],
	)
	band = reportlab.platypus.Table(
		[[build_logo(header.primary_logo, style), title_cell, build_logo(header.secondary_logo, style)]],
		colWidths=list(style.header_column_widths),
		rowHeights=[style.header_row_height],
	)
	band.setStyle(reportlab.platypus.TableStyle([
		("BACKGROUND", (1, 0), (1, 0), reportlab.lib.colors.HexColor(style.header_background)),
		("ALIGN", (0, 0), (-1, -1), "CENTER"),
		("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
	]))

	info_rows = [
		("Machine Name:", header.machine_name),
		("Filter Start Date:", header.start.strftime(DISPLAY_DATE_FORMAT)),
		("Filter End Date:", header.end.strftime(DISPLAY_DATE_FORMAT)),
	]
	info_data = [
		[
			reportlab.platypus.Paragraph(label, paragraph_styles["label"]),
			reportlab.platypus.Paragraph(xml.sax.saxutils.escape(value), paragraph_styles["body"]),
		]
		for label, value in info_rows
	]
	info = reportlab.platypus.Table(info_data, colWidths=list(style.info_column_widths))
	info.setStyle(reportlab.platypus.TableStyle([
		("BACKGROUND", (0, 0), (0, -1), reportlab.lib.colors.HexColor(style.table_header_background)),
		("GRID", (0, 0), (-1, -1), style.border_width, reportlab.lib.colors.HexColor(style.border_color)),
		("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
		("TOPPADDING", (0, 0), (-1, -1), CELL_PADDING),
		("BOTTOMPADDING", (0, 0), (-1, -1), CELL_PADDING),
	]))
	return [
		band,
		reportlab.platypus.Spacer(1, style.block_spacing),
		info,
		reportlab.platypus.Spacer(1, style.block_spacing),
	]


#============================================
def build_data_table(
	rows: list[list[str]],
	column_widths: tuple[float, ...],
	row_height: float | None,
	is_empty: bool,
	style: ReportStyle,
	paragraph_styles: dict[str, reportlab.lib.styles.ParagraphStyle],
) -> reportlab.platypus.Table:
	"""
	Build a bordered data table with a repeating shaded header row.

	Args:
		rows: Text rows, header first.
		column_widths: Column widths in points.
		row_height: Fixed data row height, or None to fit wrapped cells.
		is_empty: Whether the single data row is the no-data row.
		style: Report style sheet.
		paragraph_styles: Paragraph styles.

	Returns:
		Table flowable.
	"""
	data: list[list] = [rows[0]]
	if is_empty:
		data.append([reportlab.platypus.Paragraph(rows[1][0], paragraph_styles["empty"])] + [""] * (len(rows[1]) - 1))
		row_heights = [style.table_header_height, style.empty_row_height]
	else:
		for row in rows[1:]:
			data.append([
				reportlab.platypus.Paragraph(xml.sax.saxutils.escape(cell), paragraph_styles["cell"])
				for cell in row
			])
		row_heights = [style.table_header_height] + [row_height] * (len(rows) - 1)

	commands = [
		("BACKGROUND", (0, 0), (-1, 0), reportlab.lib.colors.HexColor(style.table_header_background)),
		("TEXTCOLOR", (0, 0), (-1, 0), reportlab.lib.colors.HexColor(style.table_header_text)),
		("FONTNAME", (0, 0), (-1, 0), style.font_bold),
		("FONTSIZE", (0, 0), (-1, 0), style.table_header_size),
		("ALIGN", (0, 0), (-1, 0), "CENTER"),
		("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
		("GRID", (0, 0), (-1, -1), style.border_width, reportlab.lib.colors.HexColor(style.border_color)),
		("TOPPADDING", (0, 1), (-1, -1), CELL_PADDING),
		("BOTTOMPADDING", (0, 1), (-1, -1), CELL_PADDING),
		(
			"ROWBACKGROUNDS",
			(0, 1),
			(-1, -1),
			[reportlab.lib.colors.HexColor(style.row_even), reportlab.lib.colors.HexColor(style.row_odd)],
		),
	]
	if is_empty:
		commands.append(("SPAN", (0, 1), (-1, 1)))
	table = reportlab.platypus.Table(
		data,
		colWidths=list(column_widths),
		rowHeights=row_heights,
		repeatRows=1,
	)
	table.setStyle(reportlab.platypus.TableStyle(commands))
	return table


#============================================
def build_alarm_story(
	header: ReportHeader,
	records: list[AlarmRecord],
	style: ReportStyle | None = None,
) -> list[reportlab.platypus.Flowable]:
	"""
	Build the alarm history story.

	Args:
		header: Header content.
		records: Alarm records in store order.
		style: Report style sheet.

	Returns:
		Story flowables.
	"""
	style = style or ReportStyle()
	paragraph_styles = build_paragraph_styles(style)
	story = build_header(header, style, paragraph_styles)
	story.append(reportlab.platypus.Paragraph(ALARM_SECTION_TITLE, paragraph_styles["section"]))
	story.append(build_data_table(
		alarm_table_rows(records),
		style.alarm_column_widths,
		None,
		not records,
		style,
		paragraph_styles,
	))
	story.append(reportlab.platypus.Paragraph(total_records_text(len(records)), paragraph_styles["caption"]))
	return story


#============================================
def build_series_story(
	header: ReportHeader,
	records: list[TimeSeriesRecord],
	value_column: str = DEFAULT_DATALOGGER_COLUMN,
	chart_available: bool = True,
	style: ReportStyle | None = None,
) -> list[reportlab.platypus.Flowable]:
	"""
	Build the data logger story with its trend note and data table.

	Args:
		header: Header content.
		records: Samples in ascending time order.
		value_column: Value column header.
		chart_available: Whether a chart page will be placed first.
		style: Report style sheet.

	Returns:
		Story flowables.
	"""
	style = style or ReportStyle()
	paragraph_styles = build_paragraph_styles(style)
	story = build_header(header, style, paragraph_styles)
	story.append(reportlab.platypus.Paragraph(TREND_SECTION_TITLE, paragraph_styles["section"]))
	note = CHART_NOTE_TEXT if chart_available else NO_CHART_TEXT
	story.append(reportlab.platypus.Paragraph(xml.sax.saxutils.escape(note), paragraph_styles["body"]))
	story.append(reportlab.platypus.Spacer(1, style.block_spacing))
	story.append(reportlab.platypus.Paragraph(SERIES_SECTION_TITLE, paragraph_styles["section"]))
	story.append(build_data_table(
		series_table_rows(records, value_column),
		style.series_column_widths,
		style.series_row_height,
		not records,
		style,
		paragraph_styles,
	))
	story.append(reportlab.platypus.Paragraph(total_records_text(len(records)), paragraph_styles["caption"]))
	return story


#============================================
def render_story_to_bytes(
	story: list[reportlab.platypus.Flowable],
	title: str,
	subject: str,
	generated_at: datetime.datetime,
	style: ReportStyle | None = None,
) -> bytes:
	"""
	Lay out a story on A4 pages with the numbered footer.

	Args:
		story: Story flowables.
		title: Document title metadata.
		subject: Document subject metadata.
		generated_at: Timestamp printed in the footer.
		style: Report style sheet.

	Returns:
		PDF bytes.
	"""
	style = style or ReportStyle()
	buffer = io.BytesIO()
	doc = reportlab.platypus.SimpleDocTemplate(
		buffer,
		pagesize=reportlab.lib.pagesizes.A4,
		leftMargin=style.page_margin,
		rightMargin=style.page_margin,
		topMargin=style.page_margin,
		bottomMargin=style.page_margin,
		title=title,
		author=DEFAULT_AUTHOR,
		subject=subject,
	)
	canvasmaker = functools.partial(
		NumberedCanvas,
		footer_prefix=generated_on_text(generated_at),
		footer_font=style.font_regular,
		footer_size=style.footer_size,
		footer_offset=style.page_margin / 2.0,
	)
	doc.build(story, canvasmaker=canvasmaker)
	return buffer.getvalue()


#============================================
def build_subject(title: str, start: datetime.datetime, end: datetime.datetime) -> str:
	return f"{title} from {start:%Y-%m-%d} to {end:%Y-%m-%d}"


#============================================
def render_alarm_document(
	header: ReportHeader,
	records: list[AlarmRecord],
	generated_at: datetime.datetime,
	style: ReportStyle | None = None,
) -> bytes:
	"""
	Render an alarm history report to PDF bytes.

	Args:
		header: Header content.
		records: Alarm records in store order.
		generated_at: Footer timestamp.
		style: Report style sheet.

	Returns:
		PDF bytes.
	"""
	story = build_alarm_story(header, records, style)
	subject = build_subject(ALARM_TITLE, header.start, header.end)
	return render_story_to_bytes(story, header.title, subject, generated_at, style)


#============================================
def render_series_document(
	header: ReportHeader,
	records: list[TimeSeriesRecord],
	generated_at: datetime.datetime,
	value_column: str = DEFAULT_DATALOGGER_COLUMN,
	chart_available: bool = True,
	style: ReportStyle | None = None,
) -> bytes:
	"""
	Render a data logger report to PDF bytes.

	Args:
		header: Header content.
		records: Samples in ascending time order.
		generated_at: Footer timestamp.
		value_column: Value column header.
		chart_available: Whether a chart page will be placed first.
		style: Report style sheet.

	Returns:
		PDF bytes.
	"""
	story = build_series_story(header, records, value_column, chart_available, style)
	subject = build_subject(SERIES_TITLE, header.start, header.end)
	return render_story_to_bytes(story, header.title, subject, generated_at, style)
