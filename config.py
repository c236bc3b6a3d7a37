import os

# Base directory
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Paths
LOG_FILE = os.getenv("LOG_FILE", os.path.join(BASE_DIR, "launch.log"))
DRAFT_DIR = os.getenv("DRAFT_DIR", os.path.join(BASE_DIR, "data", "drafts"))

# Server
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))

# Cookie sessions
SESSION_TTL = int(os.getenv("SESSION_TTL", "3600"))           # 1 hour
CLEANUP_INTERVAL = int(os.getenv("CLEANUP_INTERVAL", "300"))  # 5 minutes

# Test session
TICK_INTERVAL = float(os.getenv("TICK_INTERVAL", "1.0"))      # seconds per countdown tick
PASS_SCORE = float(os.getenv("PASS_SCORE", "60.0"))

# Submission backend (empty -> in-memory store)
SUBMISSION_API_URL = os.getenv("SUBMISSION_API_URL", "")
SUBMISSION_TIMEOUT = float(os.getenv("SUBMISSION_TIMEOUT", "10.0"))
SUBMISSION_MAX_RECORDS = int(os.getenv("SUBMISSION_MAX_RECORDS", "1000"))  # in-memory store only

# Draft autosave (off: a reload forfeits unsaved answers)
DRAFT_AUTOSAVE = os.getenv("DRAFT_AUTOSAVE", "0").lower() in ("1", "true", "yes")
DRAFT_INTERVAL = int(os.getenv("DRAFT_INTERVAL", "30"))       # seconds
