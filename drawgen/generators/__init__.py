"""
Code Generators

Backends that turn images (named draw routes) into Objective-C source:

- ObjcDrawingGenerator: CoreGraphics drawing functions (.m)
- ObjcHeaderGenerator: Size constants and function declarations (.h)
- ObjcCallerGenerator: Harness program writing each image to PNG
"""

from drawgen.generators.objc_generator import ObjcDrawingGenerator
from drawgen.generators.header_generator import ObjcHeaderGenerator
from drawgen.generators.caller_generator import ObjcCallerGenerator

__all__ = [
    'ObjcDrawingGenerator',
    'ObjcHeaderGenerator',
    'ObjcCallerGenerator',
]
