"""Public-facing API: convert source files and write generated code."""

from drawgen.extractors.route_extractor import convert_file, generate_images
from drawgen.extractors.code_writer import generate_outputs, write_outputs

__all__ = [
    'convert_file',
    'generate_images',
    'generate_outputs',
    'write_outputs',
]
