"""
Final document assembly: chart page insertion, output write, temp cleanup.
"""

# Standard Library
import io
import logging
import pathlib

# PIP3 modules
import pypdf
import pypdf.errors

logger = logging.getLogger(__name__)


#============================================
def insert_chart_page(document_bytes: bytes, chart_path: pathlib.Path) -> bytes:
	"""
	Insert the first page of a chart PDF before every document page.

	Args:
		document_bytes: Staged document PDF bytes.
		chart_path: Chart-only PDF path.

	Returns:
		Merged PDF bytes with the chart as page 1.
	"""
	chart_reader = pypdf.PdfReader(str(chart_path))
	if not chart_reader.pages:
		raise ValueError(f"Chart PDF has no pages: {chart_path}")
	writer = pypdf.PdfWriter(clone_from=pypdf.PdfReader(io.BytesIO(document_bytes)))
	writer.insert_page(chart_reader.pages[0], 0)
	buffer = io.BytesIO()
	writer.write(buffer)
	return buffer.getvalue()


#============================================
def write_pdf_bytes(document_bytes: bytes, output_path: pathlib.Path) -> pathlib.Path:
	"""
	Write PDF bytes, creating parent directories first.

	Args:
		document_bytes: PDF bytes.
		output_path: Output file path.

	Returns:
		Output path.
	"""
	output_path = pathlib.Path(output_path)
	output_path.parent.mkdir(parents=True, exist_ok=True)
	output_path.write_bytes(document_bytes)
	return output_path


#============================================
def save_document(
	document_bytes: bytes,
	output_path: pathlib.Path,
	chart_path: pathlib.Path | None = None,
) -> bool:
	"""
	Save a staged document, placing the chart page first when one exists.

	A failed merge is logged and the document is saved without the chart.
	A failed write is logged and raised.

	Args:
		document_bytes: Staged document PDF bytes.
		output_path: Output file path.
		chart_path: Optional chart-only PDF path.

	Returns:
		True when the chart page was merged.
	"""
	merged = False
	final_bytes = document_bytes
	if chart_path is not None:
		try:
			final_bytes = insert_chart_page(document_bytes, chart_path)
			merged = True
		except (OSError, ValueError, pypdf.errors.PyPdfError) as error:
			logger.warning("Could not merge chart page %s: %s", chart_path, error)
			final_bytes = document_bytes
	try:
		write_pdf_bytes(final_bytes, output_path)
	except OSError as error:
		logger.error("Error saving PDF %s: %s", output_path, error)
		raise
	logger.info("PDF saved to: %s", output_path)
	return merged


#============================================
def remove_temporary(path: pathlib.Path | None) -> bool:
	"""
	Delete a temporary file if it exists.

	Args:
		path: Temporary file path.

	Returns:
		True when a file was removed.
	"""
	if path is None:
		return False
	path = pathlib.Path(path)
	try:
		if path.exists():
			path.unlink()
			return True
	except OSError as error:
		logger.warning("Could not remove temporary file %s: %s", path, error)
	return False
