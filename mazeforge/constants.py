# =============================================================================
# MAZEFORGE CONSTANTS
# =============================================================================
# Default values for maze generation, placement and the escape objective.
# Every value here can be overridden per run through ``MazeParams``.
# =============================================================================

# =============================================================================
# GRID TOPOLOGY
# =============================================================================

WIDTH = 20                              # Cells along world +x
HEIGHT = 20                             # Cells along world +y
CELL_SIZE = 4.0                         # Edge length of one cell (meters)
LOOP_CHANCE = 0.05                      # Per-cell probability of removing one extra wall

# =============================================================================
# HEIGHT CALIBRATION
# =============================================================================

FLOOR_Z = 0.0                           # Height of floor tiles and cell centres (meters)
WALL_GROUND_LEVEL = 0.0                 # Walls / escape objective base sits at this height

# =============================================================================
# PLACEMENT
# =============================================================================

SPAWN_CLEAR_RADIUS = 5.0                # Nothing is placed closer than this to the spawn (meters)
QUANTIZE_DECIMALS = 2                   # Precision of the dedup position keys
# Decorations
DECORATION_DENSITY = 0.1                # Fraction of cells that may receive a decoration
DECORATION_SPACING = 1.0                # Minimum distance between two decorations (meters)
MAX_DECORATION_ROTATION = 360.0         # Random yaw range (degrees)
DECORATION_SCALE_RANGE = (0.8, 1.2)     # Uniform scale range
DECORATION_JITTER = 0.3                 # Max offset from cell centre as a fraction of CELL_SIZE
WALKABLE_FRACTION = 0.4                 # Walkable half-width of a cell as a fraction of CELL_SIZE

# =============================================================================
# GROUND PROBE
# =============================================================================

FLOOR_TAG = "MazeFloor"                 # Only bodies with this tag count as probe hits
PROBE_HEIGHT = 10.0                     # Ray starts this far above the placement point (meters)
PROBE_LENGTH = 20.0                     # Total ray length (meters)

# =============================================================================
# ESCAPE OBJECTIVE
# =============================================================================

PORTAL_MOVE_WINDOW = 30.0               # Seconds after generation during which the portal may move
PORTAL_PROXIMITY_THRESHOLD = 10.0       # Portal moves if the player gets this close (meters)

# =============================================================================
# SIMULATION
# =============================================================================

SIM_DT = 1 / 50                         # Update step used by the walk simulation (50 Hz)
PLAYER_SPEED = 4.0                      # Scripted player walking speed (m/s)
