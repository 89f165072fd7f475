# CapaSim — Ingredient Capacity P&L Simulator
# All time units are MINUTES of the business day; quantities are units (cups).

import os

# ── Application metadata ──────────────────────────────────────────────────────
APP_NAME    = "CapaSim"
APP_TAGLINE = "Manual vs. automated replenishment — stockout P&L replay"
APP_VERSION = "1.0"

# ── Simulation window ─────────────────────────────────────────────────────────
# Staff clock in at 08:00 and the shop closes at 22:00.  Both ends inclusive,
# one record per minute → 841 minutes per simulated day.
MINUTES_PER_HOUR = 60
MINUTES_PER_DAY  = 24 * MINUTES_PER_HOUR
OPEN_MINUTE      = 8 * MINUTES_PER_HOUR     # 08:00
CLOSE_MINUTE     = 22 * MINUTES_PER_HOUR    # 22:00

# Monthly projection assumes a flat 30-day month
DAYS_PER_MONTH = 30

# ── Default parameters ────────────────────────────────────────────────────────
# lead_time_minutes       : automated trigger → batch available
# trigger_threshold_units : start a batch when machine stock drops below this
# cycle_capacity_units    : units yielded per automated batch
# avg_unit_price          : average transaction value per unit sold
# revenue_share_of_unit   : share of a transaction's revenue owed to the ingredient
# units_per_manual_batch  : units per manually cooked batch
DEFAULT_PARAMETERS = {
    "lead_time_minutes":        45,
    "trigger_threshold_units":  30,
    "cycle_capacity_units":     72,
    "avg_unit_price":         60.0,
    "revenue_share_of_unit":   0.4,
    "units_per_manual_batch":    8,
}

# ── Scenario presets ──────────────────────────────────────────────────────────
# Each scenario overrides a subset of DEFAULT_PARAMETERS.
SCENARIOS = {
    "baseline": {
        "label":       "Baseline",
        "description": "Proposed line as quoted — 45 min cycle, 72-unit batch",
        "overrides":   {},
    },
    "fast_line": {
        "label":       "Fast Line",
        "description": "Upgraded cooker — 30 min cycle at the same batch size",
        "overrides":   {"lead_time_minutes": 30},
    },
    "large_batch": {
        "label":       "Large Batch",
        "description": "Double-size kettle — 144 units per 60 min cycle",
        "overrides":   {"cycle_capacity_units": 144, "lead_time_minutes": 60},
    },
    "early_trigger": {
        "label":       "Early Trigger",
        "description": "Start the next batch while 60 units are still on hand",
        "overrides":   {"trigger_threshold_units": 60},
    },
}

# ── Presentation ──────────────────────────────────────────────────────────────
CURRENCY_SYMBOL = "NT$"
REPORT_DIR      = os.getenv("CAPASIM_REPORT_DIR", "reports")
LOG_LEVEL       = os.getenv("CAPASIM_LOG_LEVEL", "INFO")
DETAIL_PAGE_SIZE = 50

MANUAL_COLOR    = "#E63946"
MACHINE_COLOR   = "#2EC4B6"
DEMAND_COLOR    = "#8D99AE"
THRESHOLD_COLOR = "#F4A261"
