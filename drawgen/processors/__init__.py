"""
Content Stream Processing Components

Stateful processors that turn PDF content streams into draw routes:

- OperandStack: Typed, fallible operand pops
- Resource resolver: Shadings, ExtGState alpha commands and Form XObjects
- PDF functions: Sampled, exponential and stitching function evaluation
- ContentStreamInterpreter: Operator table dispatch into a route builder
"""

from drawgen.processors.operand_stack import OperandStack
from drawgen.processors.pdf_functions import make_function, sample_function
from drawgen.processors.resource_resolver import (
    FillAlpha, StrokeAlpha, FormXObject, Resources, make_gradient, resolve_resources
)
from drawgen.processors.content_stream_interpreter import (
    ContentStreamInterpreter, PaintState, ParsingContext, interpret_content_stream
)

__all__ = [
    'OperandStack',
    'make_function',
    'sample_function',
    'FillAlpha',
    'StrokeAlpha',
    'FormXObject',
    'Resources',
    'make_gradient',
    'resolve_resources',
    'ContentStreamInterpreter',
    'PaintState',
    'ParsingContext',
    'interpret_content_stream',
]
