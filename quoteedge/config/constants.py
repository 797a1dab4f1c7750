"""Constants used throughout the analytics engine.

This module centralizes magic numbers that appear across multiple modules.
Tunable thresholds live in `quoteedge.config.settings`; the values here are
the defaults those settings start from.
"""

# Arbitrage
DEFAULT_ARB_MARGIN = 0.005  # sums below 0.995 count as arbitrage
DEFAULT_MAX_RESULTS = 10
NO_ARBITRAGE_REASON = "efficiently priced"

# Value scanning
DEFAULT_MIN_EDGE_PERCENT = 3.0
DEFAULT_MIN_VENUE_GAP = 0.10  # 10 probability points

# Liquidity / impact simulation
WHALE_SIZES_USD = (1000.0, 5000.0, 10000.0)
STANDARD_SIZE_USD = 5000.0
SMALL_SIZE_USD = 1000.0
WIDE_SPREAD = 0.02

# Retrieval boundary
FETCH_BATCH_WIDTH = 5

# Numerical tolerances
FILL_EPSILON = 1e-9

# Outcome-set / data sufficiency
MIN_CORROBORATING_SOURCES = 2
MIN_OUTCOMES = 2

# Status labels
STATUS_OK = "ok"
STATUS_INSUFFICIENT = "insufficient-data"
STATUS_DEGENERATE = "degenerate"
