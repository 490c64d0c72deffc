"""
Route Extractor

Public-facing API turning source files into images.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from drawgen.engine.config import GeneratorConfig
from drawgen.engine.pdf_engine import PDFEngine
from drawgen.models.draw_route import Image
from drawgen.utils.validation import DrawgenError

logger = logging.getLogger(__name__)

Converter = Callable[[str, GeneratorConfig], List[Image]]


def convert_file(file_path: str, config: Optional[GeneratorConfig] = None) -> List[Image]:
    """
    Convert one PDF file into images, one per page.

    Raises:
        DrawgenError: If the file cannot be converted; `file` is set to file_path
    """
    config = config or GeneratorConfig.default()
    try:
        with PDFEngine(file_path, config=config) as engine:
            return engine.convert_images()
    except DrawgenError as e:
        logger.error(f"Conversion failed: {e.with_file(file_path)}")
        raise


async def _convert_all(files: Sequence[str], config: GeneratorConfig, converter: Converter) -> List[List[Image]]:
    semaphore = asyncio.Semaphore(config.max_workers) if config.max_workers else None

    async def run(path: str) -> List[Image]:
        try:
            return await asyncio.to_thread(converter, path, config)
        except DrawgenError as e:
            raise e.with_file(path)

    async def convert(path: str) -> List[Image]:
        if semaphore is None:
            return await run(path)
        async with semaphore:
            return await run(path)

    return await asyncio.gather(*(convert(path) for path in files))


def generate_images(files: Sequence[str], config: Optional[GeneratorConfig] = None,
                    converter: Optional[Converter] = None) -> List[Image]:
    """
    Convert files concurrently, one task per file.

    Images are returned in input order, pages of one file in ascending order,
    whatever order the conversions finish in. The first failure aborts the run.

    Example:
        >>> images = generate_images(["arrow.pdf", "close.pdf"], GeneratorConfig(prefix="Icons"))
    """
    config = config or GeneratorConfig.default()
    converter = converter or convert_file
    logger.info(f"Converting {len(files)} file(s)")

    per_file = asyncio.run(_convert_all(files, config, converter))
    images = [image for images in per_file for image in images]

    logger.info(f"Converted {len(images)} image(s)")
    return images
