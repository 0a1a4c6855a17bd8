"""Configuration settings for the expediente form service."""

import os


def get_postgres_uri():
    """Get database connection URI from environment variables."""
    url = os.environ.get("DB_URL")
    if url:
        return url
    host = os.environ.get("DB_HOST", "localhost")
    port = os.environ.get("DB_PORT", 5433 if host == "localhost" else 5432)
    password = os.environ.get("DB_PASSWORD", "expediente_pass")
    user = os.environ.get("DB_USER", "expediente_user")
    db_name = os.environ.get("DB_NAME", "expediente_db")
    return f"postgresql://{user}:{password}@{host}:{port}/{db_name}"


def get_api_url():
    """Get API URL from environment variables."""
    host = os.environ.get("API_HOST", "localhost")
    port = os.environ.get("API_PORT", 8000)
    return f"http://{host}:{port}"


def get_link_ttl_hours():
    """Hours an issued form link stays valid."""
    return int(os.environ.get("LINK_TTL_HOURS", "72"))


def get_log_level():
    return os.environ.get("LOG_LEVEL", "INFO").upper()
