"""Centralized constants for retain.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

# ---------- SM-2 Scheduling ----------
MIN_EASE_FACTOR = 1.3
INITIAL_EASE_FACTOR = 2.5
INITIAL_INTERVAL = 1  # days
SECOND_INTERVAL = 6  # days
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3

# ---------- Mastery ----------
MASTERY_MIN_REPETITIONS = 3
MASTERY_MIN_INTERVAL = 30  # days

# ---------- Weak Areas ----------
WEAK_AREA_THRESHOLD = 70.0  # percent

# ---------- Users ----------
DEFAULT_USER_ID = "anonymous"

# ---------- Server ----------
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8787
