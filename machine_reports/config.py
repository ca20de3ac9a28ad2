"""
Shared configuration and constants.
"""

import dataclasses


POINTS_PER_INCH = 72.0
POINTS_PER_CM = POINTS_PER_INCH / 2.54
POINTS_PER_MM = POINTS_PER_CM / 10.0

DEFAULT_FONT_REGULAR = "Helvetica"
DEFAULT_FONT_BOLD = "Helvetica-Bold"
DEFAULT_FONT_ITALIC = "Helvetica-Oblique"
DEFAULT_TEXT_MIN_SIZE = 5.0

DEFAULT_LOCALE = "en-US"
DEFAULT_MACHINE_NAME = "Machine Name"
DEFAULT_PRIMARY_LOGO = "logos/logo1.png"
DEFAULT_SECONDARY_LOGO = "logos/logo2.png"
DEFAULT_ALARM_TABLE = "AlarmsEventLogger1"
DEFAULT_DATALOGGER_TABLE = "DataLogger1"
DEFAULT_DATALOGGER_COLUMN = "myVarToLog"
DEFAULT_AUTHOR = "machine_reports"
REPORTS_DIR_NAME = "Reports"

DISPLAY_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUERY_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
FILENAME_RANGE_FORMAT = "%Y-%m-%d_%H%M%S"
FILENAME_STAMP_FORMAT = "%Y%m%d_%H%M%S"
TEMP_STAMP_FORMAT = "%Y%m%d_%H%M%S_%f"

# Shared palette
HEADER_BACKGROUND = "#003366"
HEADER_TEXT = "#FFFFFF"
TABLE_HEADER_BACKGROUND = "#006699"
TABLE_HEADER_TEXT = "#FFFFFF"
TABLE_ROW_EVEN = "#F0F8FF"
TABLE_ROW_ODD = "#FFFFFF"
TABLE_BORDER = "#B4B4B4"
BODY_TEXT = "#000000"

ALARM_TIME_COLUMNS = ("LocalTime", "Time", "Timestamp", "EventTime")
ALARM_MESSAGE_COLUMNS = ("Message", "Text", "Description", "AlarmMessage")
ALARM_DEVICE_COLUMNS = ("Device", "SourceName", "Source", "DeviceName", "AlarmName")
ALARM_SOURCE_PATH_COLUMNS = ("SourcePath", "Path", "ObjectPath")
SERIES_TIME_COLUMNS = ("LocalTimestamp", "Timestamp", "Time")
SERIES_VALUE_FALLBACK_COLUMNS = ("Value",)


@dataclasses.dataclass(frozen=True)
class ReportStyle:
	page_margin: float = 1.5 * POINTS_PER_CM
	header_column_widths: tuple[float, float, float] = (
		4.0 * POINTS_PER_CM,
		10.0 * POINTS_PER_CM,
		4.0 * POINTS_PER_CM,
	)
	header_row_height: float = 2.5 * POINTS_PER_CM
	logo_width: float = 3.0 * POINTS_PER_CM
	info_column_widths: tuple[float, float] = (4.0 * POINTS_PER_CM, 14.0 * POINTS_PER_CM)
	alarm_column_widths: tuple[float, float, float] = (
		4.0 * POINTS_PER_CM,
		9.0 * POINTS_PER_CM,
		5.0 * POINTS_PER_CM,
	)
	series_column_widths: tuple[float, float] = (6.0 * POINTS_PER_CM, 6.0 * POINTS_PER_CM)
	table_header_height: float = 0.8 * POINTS_PER_CM
	alarm_row_height: float = 0.6 * POINTS_PER_CM
	series_row_height: float = 0.5 * POINTS_PER_CM
	empty_row_height: float = 1.0 * POINTS_PER_CM
	block_spacing: float = 0.5 * POINTS_PER_CM
	title_spacing: float = 0.3 * POINTS_PER_CM
	border_width: float = 0.5
	header_background: str = HEADER_BACKGROUND
	header_text: str = HEADER_TEXT
	table_header_background: str = TABLE_HEADER_BACKGROUND
	table_header_text: str = TABLE_HEADER_TEXT
	row_even: str = TABLE_ROW_EVEN
	row_odd: str = TABLE_ROW_ODD
	border_color: str = TABLE_BORDER
	font_regular: str = DEFAULT_FONT_REGULAR
	font_bold: str = DEFAULT_FONT_BOLD
	font_italic: str = DEFAULT_FONT_ITALIC
	title_size: float = 24.0
	section_size: float = 14.0
	table_header_size: float = 10.0
	body_size: float = 10.0
	cell_size: float = 9.0
	caption_size: float = 9.0
	footer_size: float = 8.0


@dataclasses.dataclass(frozen=True)
class ChartStyle:
	page_width: float = 595.0
	page_height: float = 842.0
	page_margin: float = 42.5
	title_bar_height: float = 50.0
	title_bar_gap: float = 15.0
	info_label_width: float = 120.0
	info_row_height: float = 25.0
	info_gap: float = 20.0
	section_title_gap: float = 20.0
	chart_height: float = 380.0
	plot_margin_left: float = 60.0
	plot_margin_right: float = 20.0
	plot_margin_top: float = 20.0
	plot_margin_bottom: float = 50.0
	horizontal_intervals: int = 5
	vertical_intervals: int = 6
	marker_size: float = 4.0
	marker_limit: int = 100
	value_padding_ratio: float = 0.1
	min_value_range: float = 0.001
	min_time_span: float = 1.0
	header_background: str = HEADER_BACKGROUND
	info_label_background: str = TABLE_HEADER_BACKGROUND
	axis_color: str = "#323232"
	grid_color: str = "#C8C8C8"
	line_color: str = "#006699"
	marker_color: str = "#003366"
	axis_width: float = 1.5
	grid_width: float = 0.5
	line_width: float = 2.0
	font_regular: str = DEFAULT_FONT_REGULAR
	font_bold: str = DEFAULT_FONT_BOLD
	title_size: float = 24.0
	section_size: float = 14.0
	axis_title_size: float = 10.0
	tick_size: float = 8.0
	info_size: float = 10.0


@dataclasses.dataclass(frozen=True)
class LabelLayout:
	"""
	Section heights for the recipe label, in points.

	The label height is the sum of these values, so any section drawn by the
	composer must have its height listed here.
	"""
	label_width: float = 100.0 * POINTS_PER_MM
	margin: float = 3.0 * POINTS_PER_MM
	title_bar_height: float = 28.0
	code_bar_height: float = 20.0
	section_gap: float = 8.0
	info_row_height: float = 16.0
	info_row_count: int = 5
	info_label_width: float = 70.0
	section_header_height: float = 18.0
	table_header_height: float = 14.0
	parameter_row_height: float = 18.0
	ingredient_row_height: float = 18.0
	parameter_columns: tuple[float, float, float] = (80.0, 50.0, 35.0)
	ingredient_columns: tuple[float, float, float] = (90.0, 40.0, 30.0)
	notes_height: float = 50.0
	notes_header_height: float = 14.0
	notes_box_height: float = 28.0
	footer_height: float = 30.0
	footer_rule_gap: float = 3.0
	footer_text_height: float = 12.0
	header_background: str = HEADER_BACKGROUND
	section_background: str = TABLE_HEADER_BACKGROUND
	label_background: str = "#E6F0FA"
	alternate_row: str = "#F5F5F5"
	border_color: str = "#969696"
	text_color: str = "#1E1E1E"
	border_width: float = 0.5
	frame_width: float = 1.0
	font_regular: str = DEFAULT_FONT_REGULAR
	font_bold: str = DEFAULT_FONT_BOLD
	title_size: float = 14.0
	subtitle_size: float = 10.0
	label_size: float = 8.0
	value_size: float = 8.0
	small_size: float = 7.0
	section_size: float = 9.0

	@property
	def notes_block_height(self) -> float:
		# never shorter than its header plus box
		return max(self.notes_height, self.notes_header_height + self.notes_box_height)

	@property
	def footer_block_height(self) -> float:
		return max(self.footer_height, self.footer_rule_gap + self.footer_text_height)


#============================================
def cm_to_points(value: float) -> float:
	"""
	Convert centimeters to points.

	Args:
		value: Centimeter value.

	Returns:
		Points value.
	"""
	return value * POINTS_PER_CM


#============================================
def mm_to_points(value: float) -> float:
	"""
	Convert millimeters to points.

	Args:
		value: Millimeter value.

	Returns:
		Points value.
	"""
	return value * POINTS_PER_MM
