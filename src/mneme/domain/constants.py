"""Centralized constants for the mneme scheduler.

All default weights, bounds and scheduling knobs live here so every layer
imports from a single source of truth.
"""

# ---------- Model weights ----------
# w0-w3: initial stability per first rating (Again, Hard, Good, Easy)
# w4-w5: initial difficulty baseline and spread
# w6-w7: difficulty update rate and mean reversion
# w8-w10: stability growth on recall
# w11-w14: stability after a lapse
# w15-w16: Hard penalty, Easy bonus
# w17-w18: short-term (same-day) stability, experimental
DEFAULT_WEIGHTS = (
    0.4072,
    1.1829,
    3.1262,
    15.4722,
    7.2102,
    0.5316,
    1.0651,
    0.0234,
    1.6160,
    0.1544,
    1.0070,
    1.9395,
    0.1100,
    0.2939,
    2.2697,
    0.2315,
    2.9898,
    0.5100,
    0.6000,
)
WEIGHT_COUNT = 19
MIN_WEIGHT_COUNT = 17  # vectors without the short-term pair are still usable
SHORT_TERM_WEIGHT_INDICES = (17, 18)

# Physically plausible range of each weight, applied by clipping.
PARAM_BOUNDS = (
    (0.01, 10.0),
    (0.01, 10.0),
    (0.1, 30.0),
    (1.0, 100.0),
    (1.0, 10.0),
    (0.01, 3.0),
    (0.01, 5.0),
    (0.001, 0.5),
    (0.0, 4.0),
    (0.01, 1.0),
    (0.01, 3.0),
    (0.1, 5.0),
    (0.001, 0.5),
    (0.01, 1.0),
    (0.01, 5.0),
    (0.01, 1.0),
    (1.0, 5.0),
    (0.0, 1.0),
    (0.0, 1.0),
)
FALLBACK_BOUNDS = (0.0, 10.0)

# ---------- Forgetting curve ----------
DECAY = -0.5
TARGET_RETENTION_AT_STABILITY = 0.9
FACTOR = TARGET_RETENTION_AT_STABILITY ** (1 / DECAY) - 1  # 19/81

# ---------- Scheduling ----------
REQUEST_RETENTION = 0.9
MAXIMUM_INTERVAL = 36500  # days
LEARNING_STEPS = (1.0, 10.0)  # minutes
RELEARNING_STEPS = (10.0,)  # minutes
GRADUATING_INTERVAL = 1  # days
EASY_INTERVAL = 4  # days

# ---------- Difficulty / stability limits ----------
MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0
MIN_INITIAL_STABILITY = 0.1
MIN_STABILITY = 0.01

# ---------- Fuzzing ----------
ENABLE_FUZZ = True
FUZZ_FACTOR = 0.05
MIN_FUZZ_INTERVAL = 3  # intervals below this are never fuzzed
MIN_FUZZED_INTERVAL = 2

# ---------- Short-term scheduling ----------
ENABLE_SHORT_TERM = False
SHORT_TERM_LAPSE_FACTOR = 0.5

# ---------- Time ----------
MINUTES_PER_DAY = 1440
SECONDS_PER_DAY = 86400

# ---------- Optimizer ----------
LEARNING_RATE = 0.05
MAX_ITERATIONS = 500
CONVERGENCE_THRESHOLD = 1e-6
MIN_REVIEWS = 100
MIN_MATURE_REVIEWS = 50
REGULARIZATION = 0.001
GRADIENT_EPSILON = 1e-5
LOG_LOSS_EPSILON = 1e-10
LOSS_INCREASE_SHRINK = 0.5
TRACE_LOG_EVERY = 50

# ---------- Analytics ----------
DEFAULT_CURVE_HORIZON = 30  # days
DEFAULT_CURVE_POINTS = 100
DEFAULT_FORECAST_DAYS = 30
