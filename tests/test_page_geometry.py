import io

import pytest
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfgen.canvas

import machine_reports.config as config
import machine_reports.drawing as drawing


#============================================
def build_canvas(geometry: drawing.PageGeometry) -> reportlab.pdfgen.canvas.Canvas:
	"""
	Build an in-memory canvas sized to a page geometry.
	"""
	return reportlab.pdfgen.canvas.Canvas(io.BytesIO(), pagesize=(geometry.page_width, geometry.page_height))


#============================================
def test_cursor_only_moves_down() -> None:
	geometry = drawing.PageGeometry(page_width=200.0, page_height=300.0, margin=10.0, cursor_y=10.0)
	assert geometry.advance(25.0) == 35.0
	assert geometry.advance(0.0) == 35.0
	with pytest.raises(ValueError):
		geometry.advance(-1.0)
	assert geometry.cursor_y == 35.0


#============================================
def test_geometry_conversions() -> None:
	geometry = drawing.PageGeometry(page_width=200.0, page_height=300.0, margin=10.0)
	assert geometry.content_width == 180.0
	assert geometry.left == 10.0
	assert geometry.pdf_y(0.0) == 300.0
	assert geometry.pdf_y(50.0) == 250.0


#============================================
def test_unit_conversions() -> None:
	assert config.cm_to_points(2.54) == pytest.approx(72.0)
	assert config.mm_to_points(100.0) == pytest.approx(283.4646, abs=1e-3)
	assert config.LabelLayout().label_width == pytest.approx(config.mm_to_points(100.0))
	assert config.ReportStyle().page_margin == pytest.approx(config.cm_to_points(1.5))


#============================================
def test_parse_hex_color() -> None:
	assert drawing.parse_hex_color("#003366") == pytest.approx((0.0, 0.2, 0.4))
	assert drawing.parse_hex_color("bad") == (0.0, 0.0, 0.0)


#============================================
def test_align_offsets() -> None:
	assert drawing.compute_align_offset(100.0, 40.0, "LEFT") == 0.0
	assert drawing.compute_align_offset(100.0, 40.0, "center") == 30.0
	assert drawing.compute_align_offset(100.0, 40.0, "RIGHT") == 60.0
	assert drawing.compute_align_offset(10.0, 40.0, "RIGHT") == 0.0


#============================================
def test_fit_font_size_shrinks_long_text() -> None:
	text = "A very long machine name that cannot fit"
	size = drawing.fit_font_size(text, "Helvetica", 10.0, 60.0)
	assert size < 10.0
	assert size >= config.DEFAULT_TEXT_MIN_SIZE
	assert drawing.fit_font_size("Hi", "Helvetica", 10.0, 60.0) == 10.0


#============================================
def test_text_box_stays_inside_box() -> None:
	geometry = drawing.PageGeometry(page_width=200.0, page_height=300.0, margin=10.0)
	pdf = build_canvas(geometry)
	x0, y0, x1, y1 = drawing.draw_text_in_box(
		pdf, geometry, "Batch No:", 10.0, 40.0, 80.0, 16.0, "Helvetica", 8.0, "#1E1E1E",
		align="LEFT", padding=3.0,
	)
	assert x0 == pytest.approx(13.0)
	assert x1 <= 90.0
	# box spans pdf y 244..260
	assert y0 >= 244.0
	assert y1 <= 260.0
	width = reportlab.pdfbase.pdfmetrics.stringWidth("Batch No:", "Helvetica", 8.0)
	assert x1 - x0 == pytest.approx(width)


#============================================
def test_polyline_and_marker_counts() -> None:
	geometry = drawing.PageGeometry(page_width=200.0, page_height=300.0, margin=10.0)
	pdf = build_canvas(geometry)
	points = [(10.0, 10.0), (20.0, 30.0), (30.0, 20.0)]
	assert drawing.draw_polyline(pdf, geometry, points, "#006699", 2.0) == 2
	assert drawing.draw_polyline(pdf, geometry, points[:1], "#006699", 2.0) == 0
	assert drawing.draw_markers(pdf, geometry, points, 4.0, "#003366") == 3
