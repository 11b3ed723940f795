import logging
import os

import uvicorn

from cloudblitz_svc import config
from cloudblitz_svc.app import app


# Set up logging for the application
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    port = int(os.getenv("PORT", "8000"))
    logger.info("Starting cloudblitz_svc on port %s", port)
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    # Entry point for the application
    main()
