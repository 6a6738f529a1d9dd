import logging

import uvicorn

from .config import get_settings
from .main import app
from .observability import setup_logging

logger = logging.getLogger("products_api")


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    logger.info(f"Server running at http://localhost:{settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
