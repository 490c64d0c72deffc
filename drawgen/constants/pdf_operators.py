"""
PDF Operator Constants

Content stream operators understood by the interpreter, grouped by
functional category according to the PDF specification.

Reference: PDF 32000-1:2008 specification, Appendix A
"""

# ==============================================================================
# Graphics State Operators (PDF spec 8.4.4)
# ==============================================================================
OP_SAVE_STATE = b'q'                 # Save graphics state
OP_RESTORE_STATE = b'Q'              # Restore graphics state
OP_CTM = b'cm'                       # Modify current transformation matrix
OP_SET_LINE_WIDTH = b'w'             # Set line width
OP_SET_LINE_CAP = b'J'               # Set line cap style
OP_SET_LINE_JOIN = b'j'              # Set line join style
OP_SET_MITER_LIMIT = b'M'            # Set miter limit
OP_SET_DASH = b'd'                   # Set line dash pattern
OP_SET_FLATNESS = b'i'               # Set flatness tolerance
OP_SET_RENDERING_INTENT = b'ri'      # Set color rendering intent
OP_SET_GRAPHICS_STATE_PARAMS = b'gs' # Set parameters from graphics state parameter dict

GRAPHICS_STATE_OPS = {
    OP_SAVE_STATE, OP_RESTORE_STATE, OP_CTM, OP_SET_LINE_WIDTH,
    OP_SET_LINE_CAP, OP_SET_LINE_JOIN, OP_SET_MITER_LIMIT,
    OP_SET_DASH, OP_SET_FLATNESS, OP_SET_RENDERING_INTENT,
    OP_SET_GRAPHICS_STATE_PARAMS
}

# ==============================================================================
# Color Operators (PDF spec 8.6.8)
# ==============================================================================
# Stroke
OP_SET_GRAY_STROKE = b'G'            # Set Gray color for stroking
OP_SET_RGB_COLOR_STROKE = b'RG'      # Set RGB color for stroking
OP_SET_CMYK_COLOR_STROKE = b'K'      # Set CMYK color for stroking
OP_SET_COLOR_STROKE = b'SC'          # Set color for stroking (general)
OP_SET_COLOR_SPACE_STROKE = b'CS'    # Set color space for stroking

# Fill (Non-Stroke)
OP_SET_GRAY_FILL = b'g'              # Set Gray color for non-stroking
OP_SET_RGB_COLOR_FILL = b'rg'        # Set RGB color for non-stroking
OP_SET_CMYK_COLOR_FILL = b'k'        # Set CMYK color for non-stroking
OP_SET_COLOR_FILL = b'sc'            # Set color for non-stroking (general)
OP_SET_COLOR_SPACE_FILL = b'cs'      # Set color space for non-stroking

COLOR_OPS = {
    OP_SET_GRAY_STROKE, OP_SET_RGB_COLOR_STROKE, OP_SET_CMYK_COLOR_STROKE,
    OP_SET_COLOR_STROKE, OP_SET_COLOR_SPACE_STROKE,
    OP_SET_GRAY_FILL, OP_SET_RGB_COLOR_FILL, OP_SET_CMYK_COLOR_FILL,
    OP_SET_COLOR_FILL, OP_SET_COLOR_SPACE_FILL
}

# ==============================================================================
# XObject Operators (PDF spec 8.8)
# ==============================================================================
OP_DO_XOBJECT = b'Do'     # Invoke named XObject (only Form XObjects are supported)

# ==============================================================================
# Path Construction Operators (PDF spec 8.5.2)
# ==============================================================================
OP_MOVETO = b'm'          # Begin new subpath (moveto)
OP_LINETO = b'l'          # Append straight line segment (lineto)
OP_CURVETO = b'c'         # Append cubic Bézier curve
OP_CURVETO_V = b'v'       # Append cubic Bézier curve (initial point replicated)
OP_CURVETO_Y = b'y'       # Append cubic Bézier curve (final point replicated)
OP_RECTANGLE = b're'      # Append rectangle
OP_CLOSEPATH = b'h'       # Close current subpath

PATH_CONSTRUCTION_OPS = {OP_MOVETO, OP_LINETO, OP_CURVETO, OP_CURVETO_V, OP_CURVETO_Y, OP_RECTANGLE, OP_CLOSEPATH}

# ==============================================================================
# Path Painting Operators (PDF spec 8.5.3)
# ==============================================================================
OP_STROKE = b'S'
OP_CLOSE_STROKE = b's'
OP_FILL = b'f'
OP_FILL_OBSOLETE = b'F'
OP_FILL_EVEN_ODD = b'f*'
OP_FILL_STROKE = b'B'
OP_FILL_STROKE_EVEN_ODD = b'B*'
OP_CLOSE_FILL_STROKE = b'b'
OP_CLOSE_FILL_STROKE_EVEN_ODD = b'b*'
OP_END_PATH = b'n'

PATH_PAINTING_OPS = {
    OP_STROKE, OP_CLOSE_STROKE, OP_FILL, OP_FILL_OBSOLETE, OP_FILL_EVEN_ODD,
    OP_FILL_STROKE, OP_FILL_STROKE_EVEN_ODD, OP_CLOSE_FILL_STROKE,
    OP_CLOSE_FILL_STROKE_EVEN_ODD, OP_END_PATH
}

EVEN_ODD_OPS = {
    OP_FILL_EVEN_ODD, OP_FILL_STROKE_EVEN_ODD, OP_CLOSE_FILL_STROKE_EVEN_ODD
}

# ==============================================================================
# Clipping Path Operators (PDF spec 8.5.4)
# ==============================================================================
OP_CLIP = b'W'            # Set clipping path using nonzero winding number rule
OP_CLIP_EVEN_ODD = b'W*'  # Set clipping path using even-odd rule

CLIPPING_OPS = {OP_CLIP, OP_CLIP_EVEN_ODD}

# ==============================================================================
# Shading Operators (PDF spec 8.7.4)
# ==============================================================================
OP_SHADING = b'sh'    # Paint area with shading pattern

# ==============================================================================
# Composite Operator Groups
# ==============================================================================

# Every operator with a defined mapping; anything else aborts the conversion
SUPPORTED_OPS = (
    GRAPHICS_STATE_OPS | COLOR_OPS | PATH_CONSTRUCTION_OPS
    | PATH_PAINTING_OPS | CLIPPING_OPS | {OP_SHADING, OP_DO_XOBJECT}
)
