"""Version information and the User-Agent string sent with requests."""

VERSION = "dev"
BUILD_DATE = "unknown"
GIT_COMMIT = "unknown"


def user_agent() -> str:
    """Return the User-Agent string for the current version."""
    return "Hawkeye/" + VERSION