import logging

import uvicorn

from app.config import settings, setup_logging


setup_logging()
logger = logging.getLogger("tv_frequency_service.main")


def run() -> None:
    """Run the API with uvicorn"""
    logger.info("Serving TV Program Frequency Service (log level %s)", settings.log_level)
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
