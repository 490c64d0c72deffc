"""Objective-C declaration (.h) backend."""

from drawgen.engine.base_generator import BaseGenerator
from drawgen.generators.objc_common import fmt_float, function_signature, image_size_name
from drawgen.models.draw_route import Image


class ObjcHeaderGenerator(BaseGenerator):
    """Declares the image size constant and the drawing function of each image"""

    def file_preamble(self) -> str:
        return "#import <CoreGraphics/CoreGraphics.h>\n\n"

    def generate_image_function(self, image: Image) -> str:
        size = image.route.bounding_rect.size
        camel = image.camel_name
        return (
            f"static const CGSize {image_size_name(camel, self.prefix)} = "
            f"(CGSize){{.width = {fmt_float(size.width)}, .height = {fmt_float(size.height)}}};\n"
            f"{function_signature(camel, self.prefix)};"
        )

    def file_ending(self) -> str:
        return ""
