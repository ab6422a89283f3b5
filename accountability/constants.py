"""Policy defaults shared across the decay, contract, and streak modules."""

# Decay bands (hours past the scheduled end)
DEFAULT_GRACE_HOURS = 24
DEFAULT_BAND_HOURS = 24
MAX_DECAY_LEVEL = 3

DECAY_LABELS = ("Fresh", "Stale", "Decaying", "Rotten")

# XP lost per decay level gained
DEFAULT_XP_PENALTY_PER_LEVEL = 10

# Commitment contract stakes
DEFAULT_MIN_STAKE = 10
DEFAULT_MAX_STAKE = 500
DEFAULT_COMPLETION_BONUS_RATIO = 0.2

# Debt score range
MAX_DEBT_SCORE = 100

# Data directory layout
TASKS_FILE = "tasks.jsonl"
PROFILES_FILE = "profiles.jsonl"
CONTRACTS_FILE = "contracts.jsonl"
DECAY_EVENTS_FILE = "decay_events.jsonl"
FOCUS_SESSIONS_FILE = "focus_sessions.jsonl"
JOB_RUNS_FILE = "job_runs.jsonl"

ENV_DATA_DIR = "ACCOUNTQ_DATA_DIR"
ENV_CONFIG = "ACCOUNTQ_CONFIG"
