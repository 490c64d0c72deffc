"""
drawgen - CoreGraphics code generation from PDF vector images.

Converts each page of a PDF into a draw route and emits Objective-C
functions that replay it through CoreGraphics.
"""

__version__ = "1.0.0"

from drawgen.engine.config import GeneratorConfig
from drawgen.extractors import convert_file, generate_images, generate_outputs, write_outputs
from drawgen.utils.validation import DrawgenError, MalformedInputError, UnsupportedSourceShapeError

__all__ = [
    'GeneratorConfig',
    'convert_file',
    'generate_images',
    'generate_outputs',
    'write_outputs',
    'DrawgenError',
    'MalformedInputError',
    'UnsupportedSourceShapeError',
]
