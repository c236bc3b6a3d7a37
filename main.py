"""
main.py — server entry point
"""

import logging
import sys

from config import DEFAULT_HOST, DEFAULT_PORT, LOG_FILE

# ── Logging ──────────────────────────────────────────────────────────────────

try:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[
            logging.FileHandler(LOG_FILE, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )
except (PermissionError, FileNotFoundError):
    # log file unavailable: console only
    logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)


def run(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    import uvicorn
    from api.app import create_app

    logger.info(f"Uvicorn server starting on {host}:{port}")
    app = create_app()
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    logger.info("=== Proctored CBT server started ===")
    try:
        run()
    except KeyboardInterrupt:
        logger.info("Stopped by user.")
