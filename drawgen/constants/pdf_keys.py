"""
PDF Dictionary Keys and Name Constants
"""

# Resource Dictionary Keys
KEY_RESOURCES = "/Resources"
KEY_XOBJECT = "/XObject"
KEY_EXT_GSTATE = "/ExtGState"
KEY_SHADING = "/Shading"

# Object Types and Subtypes
KEY_SUBTYPE = "/Subtype"
VAL_FORM = "/Form"

# Form XObject Properties
KEY_MATRIX = "/Matrix"
KEY_BBOX = "/BBox"

# Graphics State Parameter Keys (ExtGState)
KEY_FILL_OPACITY = "/ca"         # Non-stroking alpha constant
KEY_STROKE_OPACITY = "/CA"       # Stroking alpha constant

# Shading Keys
KEY_SHADING_TYPE = "/ShadingType"
KEY_COORDS = "/Coords"
KEY_DOMAIN = "/Domain"
KEY_EXTEND = "/Extend"
KEY_FUNCTION = "/Function"

# Function Keys
KEY_FUNCTION_TYPE = "/FunctionType"
KEY_FUNCTIONS = "/Functions"
KEY_BOUNDS = "/Bounds"
KEY_ENCODE = "/Encode"
KEY_DECODE = "/Decode"
KEY_RANGE = "/Range"
KEY_SIZE = "/Size"
KEY_BITS_PER_SAMPLE = "/BitsPerSample"
KEY_C0 = "/C0"
KEY_C1 = "/C1"
KEY_N = "/N"

# Shading types handled by the resolver
SHADING_AXIAL = 2
SHADING_RADIAL = 3
