import logging
import os

# HTTP server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8001"))

LEADERBOARD_LIMIT = int(os.getenv("LEADERBOARD_LIMIT", "5"))

TOKEN_TTL_SECONDS = int(os.getenv("TOKEN_TTL_SECONDS", str(30 * 24 * 3600)))
PASSWORD_HASH_ITERATIONS = int(os.getenv("PASSWORD_HASH_ITERATIONS", "120000"))

# compare-and-swap retries before a bid gives up with a conflict
BID_COMMIT_ATTEMPTS = int(os.getenv("BID_COMMIT_ATTEMPTS", "3"))

# convenience: enable debug logging
DEBUG = os.getenv("DEBUG", "0").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO")


def configure_logging():
    logging.basicConfig(
        level=LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
