"""Configuration values sourced from environment variables."""

import os
from typing import Final

LOG_LEVEL: Final[str] = os.getenv(key="LOG_LEVEL", default="INFO")
LOGGER_NAME: Final[str] = os.getenv(key="LOGGER_NAME", default="ddl-bridge")
LOG_COLOUR_ENABLED: Final[bool] = bool(
    os.getenv(key="LOG_COLOUR_ENABLED", default="True").upper() == "TRUE"
)

APPLY_STATEMENT_TIMEOUT_SECONDS: Final[float] = float(
    os.getenv(key="APPLY_STATEMENT_TIMEOUT_SECONDS", default="120")
)
COMMAND_POLL_INTERVAL_SECONDS: Final[float] = float(
    os.getenv(key="COMMAND_POLL_INTERVAL_SECONDS", default="1.0")
)
HTTP_REQUEST_TIMEOUT_SECONDS: Final[float] = float(
    os.getenv(key="HTTP_REQUEST_TIMEOUT_SECONDS", default="60")
)
