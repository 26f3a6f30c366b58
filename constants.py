# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They cover rendering properties, default window sizes, and the default
physics settings used whenever config.json leaves a parameter out.
"""

# Visualization settings
# Set to True to run in borderless fullscreen mode.
# Set to False to run in a resizable window (DEFAULT_WINDOW_SIZE).
FULLSCREEN = False
DEFAULT_WINDOW_SIZE = (1280, 720)
FPS = 60
BACKGROUND_COLOR = (17, 24, 39) # Near-black blue
WINDOW_TITLE = "Rock Paper Scissors"

# --- Physics Defaults ---
NUM_PARTICLES = 30
MAX_VELOCITY = 2.0
COLLISION_DISTANCE = 20.0
DETECTION_RADIUS = 100.0
STEERING_GAIN = 0.01
# Each particle is drawn as a PARTICLE_SIZE x PARTICLE_SIZE glyph whose
# top-left corner is its position.
PARTICLE_SIZE = 24

# --- Kind Palette ---
# Keyed by kind name so config.json can override single entries.
KIND_COLORS = {
    "rock": (168, 162, 158),     # Stone
    "paper": (241, 245, 249),    # Off White
    "scissors": (248, 113, 113), # Coral
}

# --- Status Bar ---
STATUS_PANEL_COLOR = (31, 41, 55)
STATUS_PANEL_ALPHA = 230
STATUS_MARGIN = 16
STATUS_PADDING = 12
STATUS_LINE_SPACING = 4
STATUS_FONT_SIZE = 18

# Count colors, checked top to bottom.
STATUS_COLOR_EXTINCT = (239, 68, 68)   # Red, drawn struck through
STATUS_COLOR_THRIVING = (59, 130, 246) # Blue, more than 10
STATUS_COLOR_HEALTHY = (34, 197, 94)   # Green, 5 or more
STATUS_COLOR_AT_RISK = (234, 179, 8)   # Yellow, 2 or more
STATUS_COLOR_CRITICAL = (239, 68, 68)  # Red, last survivor

# --- Completion Overlay ---
OVERLAY_ALPHA = 230
OVERLAY_TEXT = "Simulation Complete!"
OVERLAY_FONT_SIZE = 48
TEXT_COLOR = (255, 255, 255)
