"""
Code Writer

Generates every requested output file and writes them to disk. All texts are
generated before any file is opened, so a failing image leaves no partial
output behind.
"""

import logging
import os
from typing import Dict, List, Optional, Sequence

from drawgen.engine.base_generator import UniqueIdCounter
from drawgen.engine.config import GeneratorConfig
from drawgen.extractors.route_extractor import Converter, generate_images
from drawgen.generators import ObjcCallerGenerator, ObjcDrawingGenerator, ObjcHeaderGenerator
from drawgen.models.draw_route import Image
from drawgen.utils.validation import DrawgenError

logger = logging.getLogger(__name__)


def generate_outputs(images: List[Image], config: GeneratorConfig) -> Dict[str, str]:
    """
    Generate the text of every configured output.

    Returns:
        Mapping of output path to file contents
    """
    counter = UniqueIdCounter()
    outputs: Dict[str, str] = {}

    if config.header_path:
        outputs[config.header_path] = ObjcHeaderGenerator(config, counter).generate_file(images)
    if config.impl_path:
        outputs[config.impl_path] = ObjcDrawingGenerator(config, counter).generate_file(images)
    if config.caller_path:
        outputs[config.caller_path] = ObjcCallerGenerator(config, counter).generate_file(images)

    return outputs


def write_outputs(files: Sequence[str], config: Optional[GeneratorConfig] = None,
                  converter: Optional[Converter] = None) -> Dict[str, str]:
    """
    Convert source files and write the configured outputs.

    Raises:
        ValueError: If the configuration is invalid
        DrawgenError: If any file fails to convert; nothing is written then
    """
    config = config or GeneratorConfig.default()
    if not config.validate():
        raise ValueError(f"Invalid configuration: {config!r}")

    try:
        images = generate_images(files, config, converter)
        outputs = generate_outputs(images, config)
    except DrawgenError as e:
        logger.error(f"Generation failed, no files written: {e}")
        raise

    for path, text in outputs.items():
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        logger.info(f"Wrote {path}")

    return outputs
