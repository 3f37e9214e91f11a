"""Main entry point for the gamification API server"""
import logging
import os

import uvicorn

from ruang_tenang.config import validate_config, LOG_LEVEL

logger = logging.getLogger(__name__)


def main() -> None:
    """Validate configuration and serve the API"""
    validate_config()

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8080"))
    logger.info(f"Starting API server on {host}:{port}")

    uvicorn.run(
        "ruang_tenang.api.server:app",
        host=host,
        port=port,
        log_level=LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
