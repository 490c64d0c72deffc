"""
Conversion Engine

Document access, configuration and the generator base class.
"""

from drawgen.engine.config import GeneratorConfig
from drawgen.engine.base_generator import BaseGenerator, UniqueIdCounter
from drawgen.engine.pdf_engine import PDFEngine

__all__ = [
    'GeneratorConfig',
    'BaseGenerator',
    'UniqueIdCounter',
    'PDFEngine',
]
