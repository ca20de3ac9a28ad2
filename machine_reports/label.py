"""
Recipe label composition on a page sized to its content.
"""

# Standard Library
import datetime
import logging
import pathlib

# PIP3 modules
import reportlab.pdfgen.canvas

# local repo modules
import machine_reports as mrep
import machine_reports.config
import machine_reports.drawing
import machine_reports.records


LabelLayout = mrep.config.LabelLayout
PageGeometry = mrep.drawing.PageGeometry
RecipeDocument = mrep.records.RecipeDocument

DISPLAY_DATE_FORMAT = mrep.config.DISPLAY_DATE_FORMAT
LABEL_DATE_FORMAT = "%Y-%m-%d %H:%M"
PARAMETER_HEADERS = ("Parameter", "Value", "Unit", "SetPt")
INGREDIENT_HEADERS = ("Material", "Qty", "Unit", "Lot #")
CELL_PADDING = 3.0

logger = logging.getLogger(__name__)


#============================================
def compute_label_height(recipe: RecipeDocument, layout: LabelLayout | None = None) -> float:
	"""
	Compute the label page height from the recipe content.

	Args:
		recipe: Recipe to print.
		layout: Label section heights.

	Returns:
		Page height in points.
	"""
	layout = layout or LabelLayout()
	height = layout.margin
	height += layout.title_bar_height
	height += layout.code_bar_height
	height += layout.section_gap
	height += layout.info_row_height * layout.info_row_count
	height += layout.section_gap
	# process parameters
	height += layout.section_header_height + layout.table_header_height
	height += len(recipe.parameters) * layout.parameter_row_height
	height += layout.section_gap
	# materials
	height += layout.section_header_height + layout.table_header_height
	height += len(recipe.ingredients) * layout.ingredient_row_height
	height += layout.section_gap
	if recipe.notes:
		height += layout.notes_block_height
	height += layout.footer_block_height
	height += layout.margin
	return height


#============================================
def compute_column_widths(fixed: tuple[float, ...], total_width: float) -> list[float]:
	"""
	Append the remaining width as the last column.

	Args:
		fixed: Fixed column widths.
		total_width: Table width.

	Returns:
		Column widths that add up to the table width.
	"""
	widths = list(fixed)
	widths.append(max(0.0, total_width - sum(fixed)))
	return widths


#============================================
def draw_bar(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	text: str,
	height: float,
	fill: str,
	font_name: str,
	font_size: float,
	align: str = "CENTER",
) -> None:
	mrep.drawing.draw_box(
		pdf, geometry, geometry.left, geometry.cursor_y, geometry.content_width, height, fill=fill,
	)
	mrep.drawing.draw_text_in_box(
		pdf, geometry, text, geometry.left, geometry.cursor_y, geometry.content_width, height,
		font_name, font_size, "#FFFFFF", align=align, padding=CELL_PADDING, fit=True,
	)
	geometry.advance(height)


#============================================
def draw_info_block(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	recipe: RecipeDocument,
	layout: LabelLayout,
) -> None:
	"""
	Draw the label/value rows describing the batch.

	Args:
		pdf: ReportLab canvas.
		geometry: Page geometry with cursor.
		recipe: Recipe to print.
		layout: Label layout.
	"""
	rows = [
		("Batch No:", recipe.batch_number),
		("Product:", recipe.product_code),
		("Machine:", recipe.machine_name),
		("Operator:", recipe.operator_name),
		("Date/Time:", recipe.created.strftime(LABEL_DATE_FORMAT)),
	]
	value_width = geometry.content_width - layout.info_label_width
	for label, value in rows[:layout.info_row_count]:
		top = geometry.cursor_y
		mrep.drawing.draw_box(
			pdf, geometry, geometry.left, top, layout.info_label_width, layout.info_row_height,
			fill=layout.label_background, stroke=layout.border_color, line_width=layout.border_width,
		)
		mrep.drawing.draw_box(
			pdf, geometry, geometry.left + layout.info_label_width, top, value_width, layout.info_row_height,
			fill="#FFFFFF", stroke=layout.border_color, line_width=layout.border_width,
		)
		mrep.drawing.draw_text_in_box(
			pdf, geometry, label, geometry.left, top, layout.info_label_width, layout.info_row_height,
			layout.font_bold, layout.label_size, layout.text_color, align="LEFT", padding=CELL_PADDING,
		)
		mrep.drawing.draw_text_in_box(
			pdf, geometry, value, geometry.left + layout.info_label_width, top, value_width,
			layout.info_row_height, layout.font_regular, layout.value_size, layout.text_color,
			align="LEFT", padding=CELL_PADDING, fit=True,
		)
		geometry.advance(layout.info_row_height)


#============================================
def draw_table_section(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	title: str,
	headers: tuple[str, ...],
	rows: list[tuple[str, ...]],
	fixed_columns: tuple[float, ...],
	row_height: float,
	layout: LabelLayout,
) -> int:
	"""
	Draw a titled table with a header row and alternating row shading.

	Args:
		pdf: ReportLab canvas.
		geometry: Page geometry with cursor.
		title: Section title.
		headers: Column headers.
		rows: Cell text per row.
		fixed_columns: Fixed widths, the last column takes the rest.
		row_height: Data row height.
		layout: Label layout.

	Returns:
		Number of data rows drawn.
	"""
	draw_bar(
		pdf, geometry, title, layout.section_header_height, layout.section_background,
		layout.font_bold, layout.section_size, align="LEFT",
	)
	widths = compute_column_widths(fixed_columns, geometry.content_width)
	table_top = geometry.cursor_y

	mrep.drawing.draw_box(
		pdf, geometry, geometry.left, geometry.cursor_y, geometry.content_width, layout.table_header_height,
		fill=layout.label_background,
	)
	x = geometry.left
	for header, width in zip(headers, widths):
		mrep.drawing.draw_text_in_box(
			pdf, geometry, header, x, geometry.cursor_y, width, layout.table_header_height,
			layout.font_bold, layout.small_size, layout.text_color, align="LEFT", padding=CELL_PADDING, fit=True,
		)
		x += width
	geometry.advance(layout.table_header_height)

	for index, row in enumerate(rows):
		fill = "#FFFFFF" if index % 2 == 0 else layout.alternate_row
		x = geometry.left
		for cell, width in zip(row, widths):
			mrep.drawing.draw_box(
				pdf, geometry, x, geometry.cursor_y, width, row_height,
				fill=fill, stroke=layout.border_color, line_width=layout.border_width,
			)
			mrep.drawing.draw_text_in_box(
				pdf, geometry, cell, x, geometry.cursor_y, width, row_height,
				layout.font_regular, layout.value_size, layout.text_color,
				align="LEFT", padding=CELL_PADDING, fit=True,
			)
			x += width
		geometry.advance(row_height)

	mrep.drawing.draw_box(
		pdf, geometry, geometry.left, table_top, geometry.content_width, geometry.cursor_y - table_top,
		stroke=layout.border_color, line_width=layout.frame_width,
	)
	return len(rows)


#============================================
def draw_notes_block(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	notes: str,
	layout: LabelLayout,
) -> None:
	top = geometry.cursor_y
	mrep.drawing.draw_text_in_box(
		pdf, geometry, "Notes:", geometry.left, top, geometry.content_width, layout.notes_header_height,
		layout.font_bold, layout.label_size, layout.text_color, align="LEFT",
	)
	geometry.advance(layout.notes_header_height)
	mrep.drawing.draw_box(
		pdf, geometry, geometry.left, geometry.cursor_y, geometry.content_width, layout.notes_box_height,
		fill="#FFFFFF", stroke=layout.border_color, line_width=layout.border_width,
	)
	mrep.drawing.draw_text_in_box(
		pdf, geometry, notes, geometry.left, geometry.cursor_y, geometry.content_width, layout.notes_box_height,
		layout.font_regular, layout.small_size, layout.text_color, align="LEFT", padding=CELL_PADDING, fit=True,
	)
	geometry.advance(layout.notes_box_height)
	# pad up to the block height
	geometry.advance(max(0.0, layout.notes_block_height - layout.notes_header_height - layout.notes_box_height))


#============================================
def draw_footer(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: PageGeometry,
	generated_at: datetime.datetime,
	layout: LabelLayout,
) -> None:
	top = geometry.cursor_y
	mrep.drawing.draw_line(
		pdf, geometry, (geometry.left, top), (geometry.left + geometry.content_width, top),
		layout.header_background, layout.border_width,
	)
	geometry.advance(layout.footer_rule_gap)
	text = f"Generated: {generated_at.strftime(DISPLAY_DATE_FORMAT)}"
	mrep.drawing.draw_text_in_box(
		pdf, geometry, text, geometry.left, geometry.cursor_y, geometry.content_width, layout.footer_text_height,
		layout.font_regular, layout.small_size, layout.text_color, align="CENTER",
	)
	geometry.advance(layout.footer_text_height)
	geometry.advance(max(0.0, layout.footer_block_height - layout.footer_rule_gap - layout.footer_text_height))


#============================================
def draw_recipe_label(
	pdf: reportlab.pdfgen.canvas.Canvas,
	recipe: RecipeDocument,
	layout: LabelLayout | None = None,
	generated_at: datetime.datetime | None = None,
) -> float:
	"""
	Draw a recipe label top-down on a canvas sized by compute_label_height.

	Args:
		pdf: ReportLab canvas.
		recipe: Recipe to print.
		layout: Label layout.
		generated_at: Footer timestamp, defaults to now.

	Returns:
		Height consumed, margins included.
	"""
	layout = layout or LabelLayout()
	generated_at = generated_at or datetime.datetime.now()
	page_height = compute_label_height(recipe, layout)
	geometry = PageGeometry(
		page_width=layout.label_width,
		page_height=page_height,
		margin=layout.margin,
		cursor_y=layout.margin,
	)

	draw_bar(
		pdf, geometry, recipe.recipe_name, layout.title_bar_height, layout.header_background,
		layout.font_bold, layout.title_size,
	)
	draw_bar(
		pdf, geometry, f"Code: {recipe.recipe_code}", layout.code_bar_height, layout.section_background,
		layout.font_bold, layout.subtitle_size,
	)
	geometry.advance(layout.section_gap)

	draw_info_block(pdf, geometry, recipe, layout)
	geometry.advance(layout.section_gap)

	parameter_rows = [
		(parameter.name, parameter.value, parameter.unit, parameter.set_point)
		for parameter in recipe.parameters
	]
	draw_table_section(
		pdf, geometry, "PROCESS PARAMETERS", PARAMETER_HEADERS, parameter_rows,
		layout.parameter_columns, layout.parameter_row_height, layout,
	)
	geometry.advance(layout.section_gap)

	ingredient_rows = [
		(ingredient.name, f"{ingredient.quantity:.2f}", ingredient.unit, ingredient.lot_number)
		for ingredient in recipe.ingredients
	]
	draw_table_section(
		pdf, geometry, "MATERIALS", INGREDIENT_HEADERS, ingredient_rows,
		layout.ingredient_columns, layout.ingredient_row_height, layout,
	)
	geometry.advance(layout.section_gap)

	if recipe.notes:
		draw_notes_block(pdf, geometry, recipe.notes, layout)

	draw_footer(pdf, geometry, generated_at, layout)
	geometry.advance(layout.margin)

	# outer frame
	mrep.drawing.draw_box(
		pdf, geometry, 0.0, 0.0, layout.label_width, page_height,
		stroke=layout.border_color, line_width=layout.frame_width,
	)
	if abs(geometry.cursor_y - page_height) > 0.01:
		logger.warning("Label height mismatch: drew %.2f of %.2f", geometry.cursor_y, page_height)
	return geometry.cursor_y


#============================================
def render_recipe_label(
	recipe: RecipeDocument,
	output_path: pathlib.Path,
	layout: LabelLayout | None = None,
	generated_at: datetime.datetime | None = None,
) -> float:
	"""
	Render a recipe label PDF.

	Args:
		recipe: Recipe to print.
		output_path: Output PDF path.
		layout: Label layout.
		generated_at: Footer timestamp.

	Returns:
		Label height in points.
	"""
	layout = layout or LabelLayout()
	page_height = compute_label_height(recipe, layout)
	pdf = reportlab.pdfgen.canvas.Canvas(
		str(output_path),
		pagesize=(layout.label_width, page_height),
	)
	pdf.setTitle(f"Recipe: {recipe.recipe_name}")
	pdf.setAuthor(mrep.config.DEFAULT_AUTHOR)
	pdf.setSubject(f"Recipe label {recipe.recipe_code}")
	draw_recipe_label(pdf, recipe, layout, generated_at)
	pdf.showPage()
	pdf.save()
	logger.info("Recipe label generated: %s (%.1f pt)", output_path, page_height)
	return page_height
