"""
Constants and configuration values for the Face Photobooth
"""

# MediaPipe Face Mesh landmark indices tracing the face oval, clockwise from
# the top of the forehead
FACE_CONTOUR = (
    10, 338, 297, 332, 284, 251, 389, 356, 454, 323, 361, 288, 397, 365,
    379, 378, 400, 377, 152, 148, 176, 149, 150, 136, 172, 58, 132, 93,
    234, 127, 162, 21, 54, 103, 67, 109,
)

# Jaw points followed by the forehead arc, top center out to the right temple
JAW_LINE = tuple(range(17))
FOREHEAD_ARC = (10, 338, 297, 332, 284, 251, 389, 356, 454)
HEAD_CONTOUR = JAW_LINE + FOREHEAD_ARC

CONTOURS = {
    "face": FACE_CONTOUR,
    "head": HEAD_CONTOUR,
}

# Software zoom control (no hardware zoom). The slider runs over negative
# values and the effective magnification is |1 / value|.
SOFTWARE_DEFAULT_SCALE = 0.9
SOFTWARE_ZOOM_MIN = -4.0
SOFTWARE_ZOOM_MAX = -1.0
SOFTWARE_ZOOM_STEP = 0.1

# Capture viewport (portrait booth frame)
DEFAULT_VIEWPORT = (400, 720)

# Face slots as fractions of the viewport: (left, top, width)
FACE_SLOTS = {
    "badge": (0.15, 0.45, 0.28),
}

# Tone presets: (3x3 matrix rows, bias) applied in RGB order
TONE_PRESETS = {
    "identity": (
        ((1.0, 0.0, 0.0),
         (0.0, 1.0, 0.0),
         (0.0, 0.0, 1.0)),
        (0.0, 0.0, 0.0),
    ),
    "grayscale": (
        ((0.299, 0.587, 0.114),
         (0.299, 0.587, 0.114),
         (0.299, 0.587, 0.114)),
        (0.0, 0.0, 0.0),
    ),
    "sepia": (
        ((0.393, 0.769, 0.189),
         (0.349, 0.686, 0.168),
         (0.272, 0.534, 0.131)),
        (0.0, 0.0, 0.0),
    ),
    "warm": (
        ((1.08, 0.0, 0.0),
         (0.0, 1.0, 0.0),
         (0.0, 0.0, 0.88)),
        (6.0, 0.0, -4.0),
    ),
    "cool": (
        ((0.9, 0.0, 0.0),
         (0.0, 1.0, 0.0),
         (0.0, 0.0, 1.1)),
        (-4.0, 0.0, 6.0),
    ),
}

# MediaPipe Face Mesh options used by the default detector
FACE_MESH_OPTIONS = {
    "max_num_faces": 1,
    "refine_landmarks": True,
    "min_detection_confidence": 0.5,
    "min_tracking_confidence": 0.5,
}
