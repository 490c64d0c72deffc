"""
PDF Engine - Document to Draw Route Conversion

The PDFEngine opens one source document, resolves the resources of each page
and runs the content stream interpreter over it. Each page becomes one Image
whose subroutes live in its own RouteArena.

Usage:
    >>> from drawgen.engine.pdf_engine import PDFEngine
    >>> from drawgen.engine.config import GeneratorConfig
    >>>
    >>> with PDFEngine('arrow.pdf', config=GeneratorConfig()) as engine:
    ...     images = engine.convert_images()
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import pikepdf

from drawgen.constants.pdf_keys import KEY_RESOURCES
from drawgen.engine.config import GeneratorConfig
from drawgen.models.draw_route import DrawRoute, Image, Rect, RouteArena
from drawgen.processors.content_stream_interpreter import ContentStreamInterpreter
from drawgen.processors.resource_resolver import resolve_resources
from drawgen.utils.naming import image_name_for
from drawgen.utils.validation import (
    DrawgenError, MalformedInputError, UnsupportedSourceShapeError, validate_source_file
)

logger = logging.getLogger(__name__)


class PDFEngine:
    """
    Context manager around a pikepdf document.

    Example:
        >>> with PDFEngine('icons/close.pdf') as engine:
        ...     route, arena = engine.convert_page(0)
    """

    def __init__(self, file_path: str, config: Optional[GeneratorConfig] = None):
        """
        Args:
            file_path: Path to PDF file to convert
            config: Generation configuration (uses defaults if None)

        Raises:
            FileNotFoundError: If file does not exist
            UnsupportedSourceShapeError: If the file is not a PDF
            MalformedInputError: If the PDF signature is missing
        """
        self.file_path = file_path
        self.config = config or GeneratorConfig.default()

        validate_source_file(file_path)

        self._pikepdf_doc: Optional[pikepdf.Pdf] = None
        logger.debug(f"PDFEngine initialized for: {Path(file_path).name}")

    def __enter__(self) -> 'PDFEngine':
        try:
            logger.debug(f"Opening PDF: {self.file_path}")
            self._pikepdf_doc = pikepdf.open(self.file_path)
        except pikepdf.PdfError as e:
            logger.error(f"Failed to open PDF: {e}")
            raise MalformedInputError(f"Failed to open PDF: {e}", file=self.file_path) from e
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._pikepdf_doc is not None:
            self._pikepdf_doc.close()
            self._pikepdf_doc = None
        return False

    @property
    def pikepdf_document(self) -> pikepdf.Pdf:
        if self._pikepdf_doc is None:
            raise RuntimeError("PDF not open. Use PDFEngine as context manager.")
        return self._pikepdf_doc

    def get_page_count(self) -> int:
        return len(self.pikepdf_document.pages)

    def get_page_bounds(self, page_index: int) -> Rect:
        """MediaBox of a page as a Rect."""
        page = self.pikepdf_document.pages[page_index]
        try:
            x0, y0, x1, y1 = [float(v) for v in page.mediabox]
        except (TypeError, ValueError) as e:
            raise MalformedInputError(f"Page {page_index} has an invalid MediaBox") from e
        return Rect.from_bounds(x0, y0, x1, y1)

    def convert_page(self, page_index: int) -> Tuple[DrawRoute, RouteArena]:
        """
        Interpret one page into a route and the arena holding its subroutes.

        Raises:
            MalformedInputError: If the content stream cannot be converted
        """
        page = self.pikepdf_document.pages[page_index]
        bounds = self.get_page_bounds(page_index)
        resources = resolve_resources(page.obj.get(KEY_RESOURCES))

        try:
            instructions = pikepdf.parse_content_stream(page)
        except pikepdf.PdfError as e:
            raise MalformedInputError(f"Page {page_index}: cannot parse content stream: {e}") from e

        interpreter = ContentStreamInterpreter(RouteArena())
        route = interpreter.interpret(instructions, resources, bounds)
        logger.debug(
            f"Page {page_index}: {len(route.steps)} steps, "
            f"{len(route.gradients)} gradients, {len(interpreter.arena)} subroutes"
        )
        return route, interpreter.arena

    def convert_pages(self) -> List[Tuple[DrawRoute, RouteArena]]:
        """
        Convert every page in ascending order.

        Raises:
            UnsupportedSourceShapeError: For multi-page documents unless
                split_multipage is enabled
        """
        page_count = self.get_page_count()
        if page_count == 0:
            raise UnsupportedSourceShapeError("Document has no pages", file=self.file_path)
        if page_count > 1 and not self.config.split_multipage:
            raise UnsupportedSourceShapeError(
                f"Document has {page_count} pages, expected exactly one", file=self.file_path
            )
        return [self.convert_page(i) for i in range(page_count)]

    def convert_images(self) -> List[Image]:
        """Convert pages into named images; errors are attributed to this file."""
        try:
            pages = self.convert_pages()
        except DrawgenError as e:
            raise e.with_file(self.file_path)

        images = [
            Image(name=image_name_for(self.file_path, index), route=route, arena=arena)
            for index, (route, arena) in enumerate(pages)
        ]
        logger.info(f"Converted {Path(self.file_path).name}: {len(images)} image(s)")
        return images
