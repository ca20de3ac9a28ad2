"""
Canvas drawing primitives in top-down page coordinates.

Layout code measures offsets from the top edge of the page, the way the
report sections are stacked. ReportLab measures from the bottom edge, so
every primitive here takes the page height and flips y before drawing.
"""

# Standard Library
import dataclasses

# PIP3 modules
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfgen.canvas

# local repo modules
import machine_reports as mrep
import machine_reports.config


DEFAULT_TEXT_MIN_SIZE = mrep.config.DEFAULT_TEXT_MIN_SIZE


@dataclasses.dataclass
class PageGeometry:
	page_width: float
	page_height: float
	margin: float
	cursor_y: float = 0.0

	@property
	def content_width(self) -> float:
		return self.page_width - 2.0 * self.margin

	@property
	def left(self) -> float:
		return self.margin

	def advance(self, amount: float) -> float:
		"""
		Move the cursor down the page.

		Args:
			amount: Distance in points, must not be negative.

		Returns:
			New cursor offset.
		"""
		if amount < 0.0:
			raise ValueError(f"Cursor can only advance downward, got {amount}")
		self.cursor_y += amount
		return self.cursor_y

	def pdf_y(self, offset: float) -> float:
		return self.page_height - offset


#============================================
def parse_hex_color(value: str) -> tuple[float, float, float]:
	"""
	Parse a hex color string into RGB floats.

	Args:
		value: Color string like "#AABBCC".

	Returns:
		Tuple of (r, g, b) in 0.0-1.0 range.
	"""
	if not value or not value.startswith("#") or len(value) != 7:
		return (0.0, 0.0, 0.0)
	red = int(value[1:3], 16) / 255.0
	green = int(value[3:5], 16) / 255.0
	blue = int(value[5:7], 16) / 255.0
	return (red, green, blue)


#============================================
def set_fill(pdf: reportlab.pdfgen.canvas.Canvas, color: str) -> None:
	red, green, blue = parse_hex_color(color)
	pdf.setFillColorRGB(red, green, blue)


#============================================
def set_stroke(pdf: reportlab.pdfgen.canvas.Canvas, color: str, width: float) -> None:
	red, green, blue = parse_hex_color(color)
	pdf.setStrokeColorRGB(red, green, blue)
	pdf.setLineWidth(width)


#============================================
def compute_align_offset(available: float, used: float, align: str) -> float:
	"""
	Compute an alignment offset.

	Args:
		available: Available dimension.
		used: Dimension taken by the content.
		align: Alignment string.

	Returns:
		Offset in points.
	"""
	normalized = align.strip().upper()
	if normalized in ("LEFT", "TOP"):
		return 0.0
	if normalized in ("RIGHT", "BOTTOM"):
		return max(0.0, available - used)
	return max(0.0, (available - used) / 2.0)


#============================================
def fit_font_size(
	text: str,
	font_name: str,
	font_size: float,
	max_width: float,
	min_size: float = DEFAULT_TEXT_MIN_SIZE,
) -> float:
	"""
	Shrink a font size until the text fits a width.

	Args:
		text: Text content.
		font_name: ReportLab font name.
		font_size: Preferred font size.
		max_width: Available width.
		min_size: Smallest size allowed.

	Returns:
		Font size to draw with.
	"""
	width = reportlab.pdfbase.pdfmetrics.stringWidth(text, font_name, font_size)
	if width <= max_width or width <= 0.0 or max_width <= 0.0:
		return font_size
	scaled = font_size * max_width / width
	return max(min_size, scaled)


#============================================
def text_baseline(box_bottom: float, box_height: float, font_name: str, font_size: float) -> float:
	"""
	Compute the baseline that centers a line of text vertically in a box.

	Args:
		box_bottom: Box bottom edge in PDF coordinates.
		box_height: Box height.
		font_name: ReportLab font name.
		font_size: Font size.

	Returns:
		Baseline y in PDF coordinates.
	"""
	ascent = reportlab.pdfbase.pdfmetrics.getAscent(font_name) * font_size / 1000.0
	descent = reportlab.pdfbase.pdfmetrics.getDescent(font_name) * font_size / 1000.0
	glyph_height = ascent - descent
	return box_bottom + (box_height - glyph_height) / 2.0 - descent


#============================================
def draw_box(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	x: float,
	top: float,
	width: float,
	height: float,
	fill: str | None = None,
	stroke: str | None = None,
	line_width: float = 0.5,
) -> None:
	"""
	Draw a rectangle given its top-left corner.

	Args:
		pdf: ReportLab canvas.
		geometry: Page geometry for the y flip.
		x: Left edge.
		top: Top edge offset from the page top.
		width: Box width.
		height: Box height.
		fill: Fill color, or None for no fill.
		stroke: Border color, or None for no border.
		line_width: Border width.
	"""
	if fill is None and stroke is None:
		return
	if fill is not None:
		set_fill(pdf, fill)
	if stroke is not None:
		set_stroke(pdf, stroke, line_width)
	pdf.rect(
		x,
		geometry.pdf_y(top + height),
		width,
		height,
		stroke=1 if stroke is not None else 0,
		fill=1 if fill is not None else 0,
	)


#============================================
def draw_text_in_box(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	text: str,
	x: float,
	top: float,
	width: float,
	height: float,
	font_name: str,
	font_size: float,
	color: str,
	align: str = "CENTER",
	padding: float = 0.0,
	fit: bool = False,
) -> tuple[float, float, float, float]:
	"""
	Draw one line of text aligned inside a box and vertically centered.

	Args:
		pdf: ReportLab canvas.
		geometry: Page geometry for the y flip.
		text: Text content.
		x: Box left edge.
		top: Box top offset.
		width: Box width.
		height: Box height.
		font_name: ReportLab font name.
		font_size: Font size.
		color: Text color.
		align: LEFT, CENTER or RIGHT.
		padding: Horizontal padding inside the box.
		fit: Whether to shrink text to the box width.

	Returns:
		Text bounding box (x0, y0, x1, y1) in PDF coordinates.
	"""
	available = max(0.0, width - 2.0 * padding)
	if fit:
		font_size = fit_font_size(text, font_name, font_size, available)
	text_width = reportlab.pdfbase.pdfmetrics.stringWidth(text, font_name, font_size)
	text_x = x + padding + compute_align_offset(available, text_width, align)
	box_bottom = geometry.pdf_y(top + height)
	baseline = text_baseline(box_bottom, height, font_name, font_size)
	set_fill(pdf, color)
	pdf.setFont(font_name, font_size)
	pdf.drawString(text_x, baseline, text)
	ascent = reportlab.pdfbase.pdfmetrics.getAscent(font_name) * font_size / 1000.0
	descent = reportlab.pdfbase.pdfmetrics.getDescent(font_name) * font_size / 1000.0
	return (text_x, baseline + descent, text_x + text_width, baseline + ascent)


#============================================
def draw_line(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	start: tuple[float, float],
	end: tuple[float, float],
	color: str,
	width: float,
) -> None:
	"""
	Draw a straight line between two top-down points.

	Args:
		pdf: ReportLab canvas.
		geometry: Page geometry for the y flip.
		start: (x, top) start point.
		end: (x, top) end point.
		color: Stroke color.
		width: Line width.
	"""
	set_stroke(pdf, color, width)
	pdf.line(start[0], geometry.pdf_y(start[1]), end[0], geometry.pdf_y(end[1]))


#============================================
def draw_polyline(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	points: list[tuple[float, float]],
	color: str,
	width: float,
) -> int:
	"""
	Draw connected segments between consecutive points.

	Args:
		pdf: ReportLab canvas.
		geometry: Page geometry for the y flip.
		points: Top-down points.
		color: Stroke color.
		width: Line width.

	Returns:
		Number of segments drawn.
	"""
	if len(points) < 2:
		return 0
	set_stroke(pdf, color, width)
	pdf.setLineCap(1)
	for index in range(1, len(points)):
		start = points[index - 1]
		end = points[index]
		pdf.line(start[0], geometry.pdf_y(start[1]), end[0], geometry.pdf_y(end[1]))
	return len(points) - 1


#============================================
def draw_markers(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	points: list[tuple[float, float]],
	size: float,
	color: str,
) -> int:
	"""
	Draw filled circular markers centered on points.

	Args:
		pdf: ReportLab canvas.
		geometry: Page geometry for the y flip.
		points: Top-down points.
		size: Marker diameter.
		color: Fill color.

	Returns:
		Number of markers drawn.
	"""
	set_fill(pdf, color)
	for point in points:
		pdf.circle(point[0], geometry.pdf_y(point[1]), size / 2.0, stroke=0, fill=1)
	return len(points)


#============================================
def draw_rotated_text(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	text: str,
	pivot: tuple[float, float],
	angle: float,
	font_name: str,
	font_size: float,
	color: str,
) -> None:
	"""
	Draw text centered on a pivot and rotated about it.

	Args:
		pdf: ReportLab canvas.
		geometry: Page geometry for the y flip.
		text: Text content.
		pivot: (x, top) pivot point.
		angle: Counter-clockwise rotation in degrees.
		font_name: ReportLab font name.
		font_size: Font size.
		color: Text color.
	"""
	ascent = reportlab.pdfbase.pdfmetrics.getAscent(font_name) * font_size / 1000.0
	descent = reportlab.pdfbase.pdfmetrics.getDescent(font_name) * font_size / 1000.0
	pdf.saveState()
	pdf.translate(pivot[0], geometry.pdf_y(pivot[1]))
	pdf.rotate(angle)
	set_fill(pdf, color)
	pdf.setFont(font_name, font_size)
	pdf.drawCentredString(0.0, -(ascent + descent) / 2.0, text)
	pdf.restoreState()
