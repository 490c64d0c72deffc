"""
Objective-C caller (test harness) backend.

The generated program renders every image into an off-screen bitmap and
writes it as PNG. Each call's status is OR-ed into the exit code so that
one failing image does not stop the others from being attempted.
"""

from drawgen.engine.base_generator import BaseGenerator
from drawgen.generators.objc_common import fmt_float, function_name, image_size_name, objc_string
from drawgen.models.draw_route import Image

_WRITE_IMAGE_TO_FILE = """\
typedef void (*DrawingFunction)(CGContextRef);
static const CGFloat kScale = {scale};

static int WriteImageToFile(DrawingFunction f,
                            CGSize s,
                            NSString* outputFilePath) {{
  CGSize contextSize =
  CGSizeApplyAffineTransform(s, CGAffineTransformMakeScale(kScale, kScale));
  CGColorSpaceRef colorSpace = CGColorSpaceCreateDeviceRGB();
  CGContextRef ctx =
    CGBitmapContextCreate(NULL, (size_t)contextSize.width, (size_t)contextSize.height, 8, 0,
                          colorSpace, kCGImageAlphaPremultipliedLast);
  CGContextSetAllowsAntialiasing(ctx, {antialiasing});
  CGContextScaleCTM(ctx, kScale, kScale);
  f(ctx);
  CGImageRef img = CGBitmapContextCreateImage(ctx);
  NSURL* url = [NSURL fileURLWithPath:outputFilePath];
  CGImageDestinationRef destination = CGImageDestinationCreateWithURL(
    (__bridge CFURLRef)url, kUTTypePNG, 1, nil);
  CGImageDestinationAddImage(destination, img, nil);
  BOOL t = CGImageDestinationFinalize(destination);

  CGColorSpaceRelease(colorSpace);
  CGContextRelease(ctx);
  CGImageRelease(img);
  CFRelease(destination);
  return t ? 0 : 1;
}}

int main(int __attribute__((unused)) argc, const char* __attribute__((unused)) argv[]) {{
  int retCode = 0;

"""


class ObjcCallerGenerator(BaseGenerator):
    """Harness program calling every generated drawing function"""

    def __init__(self, config, counter=None):
        super().__init__(config, counter)
        self.header_import_path = config.resolved_header_import_path
        if not self.header_import_path:
            raise ValueError("Caller generation needs header_import_path or header_path")

    def file_preamble(self) -> str:
        imports = "\n".join([
            "#import <CoreGraphics/CoreGraphics.h>",
            "#import <CoreServices/CoreServices.h>",
            "#import <Foundation/Foundation.h>",
            "#import <ImageIO/ImageIO.h>",
            "",
            f'#import "{self.header_import_path}"',
        ])
        body = _WRITE_IMAGE_TO_FILE.format(
            scale=fmt_float(self.config.scale),
            antialiasing="YES" if self.config.allow_antialiasing else "NO",
        )
        return f"{imports}\n\n{body}"

    def generate_image_function(self, image: Image) -> str:
        camel = image.camel_name
        output_dir = self.config.output_dir.rstrip("/")
        return (
            f"  retCode |= WriteImageToFile({function_name(camel, self.prefix)},\n"
            f"      {image_size_name(camel, self.prefix)},\n"
            f"      {objc_string(f'{output_dir}/{image.name}.png')});"
        )

    def file_ending(self) -> str:
        return "  return retCode;\n}"
