# settings.py

# Grid
CELL_SIZE = 40.0                # side of one square grid cell, in world units

# Obstacles
OBSTACLE_SAFETY_MARGIN = 5.0    # added to obstacle radius + agent radius when blocking cells
WEAK_CELL_BIAS = 8              # pathfinder preference for cells held by a one-shot obstacle
CONTESTED_CELL_BIAS = -400      # pathfinder aversion for cells held by a moving unit

# Potential field
LOOKAHEAD_TICKS = 10            # how far ahead moving units are extrapolated
REACHABILITY_EPS = 3.0
POSITION_FACTOR = 50.0          # max positional bias at the enemy base corner
ALLY_WIZARD_CAST_RANGE_FACTOR = 15.0
ALLY_WIZARD_CONE = 3.141592653589793 / 4
ALLY_MELEE_MINION_VISION_FACTOR = 3.0
ALLY_RANGED_MINION_VISION_FACTOR = 5.0
CROWDED_BY_ALLY_FACTOR = -10.0
ENEMY_WIZARD_RANGE_FACTOR = -5.0
ENEMY_BUILDING_RANGE_FACTOR = -5.0
ENEMY_MELEE_MINION_RANGE_FACTOR = -1.0
ENEMY_RANGED_MINION_RANGE_FACTOR = -2.0
CLOSE_TO_TREE_FACTOR = -3.0
CLOSE_TO_TREE_CELLS = 3
BONUS_FACTOR = 40.0
BONUS_ATTRACTION_RADIUS = 400.0

# Pathfinding
EXPANSION_BUDGET = 200          # max A* node expansions per tick
SEGMENT_SAMPLE_STEP = 0.5       # straight-line samples per cell when shortcutting

# Steering
BISECTION_TOLERANCE = 1e-6
BISECTION_MAX_ITERATIONS = 50
AVOIDANCE_LOOKAHEAD_TICKS = 8
AVOIDANCE_DIRECTIONS = 12       # candidate headings per full turn when dodging (30 degree steps)

# Targeting
MELEE_THREAT_MARGIN = 10.0      # extra distance at which a melee minion counts as "on us"
STRIKE_POINT_RINGS = 4
STRIKE_POINT_RAYS = 5

# Stall recovery
STALL_EPSILON = 1.0             # allowed mismatch between requested and actual displacement
MIN_MOTION = 0.1                # below this the agent is considered standing
ESCAPE_DISTANCE = 2 * CELL_SIZE

# Orchestration
IDLE_TICKS = 125                # opening ticks spent turning in place
LOW_LIFE_FRACTION = 0.4
DANGER_ATTACKERS = 3            # hostiles covering our position that force a retreat
WAYPOINT_REACHED_RADIUS_FACTOR = 2.0
BONUS_ARRIVAL_MARGIN_TICKS = 40

# Telemetry
TELEMETRY_SAMPLE_EVERY_N_TICKS = 10
