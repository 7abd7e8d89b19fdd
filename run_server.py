import os

import uvicorn

from soarcast.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="soarcast_server")
    if not settings.api_key:
        logger.warning("SOARCAST_API_KEY is not set; the API accepts unauthenticated requests")

    uvicorn.run(
        "soarcast.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
