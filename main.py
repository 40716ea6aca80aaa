import logging
import sys

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from waitlist.core.config import settings  # noqa: E402
from waitlist.core.exceptions import ConfigurationError  # noqa: E402
from waitlist.main import app, configure_logging  # noqa: E402

logger = logging.getLogger("waitlist")


def check_configuration() -> None:
    """Abort with a readable list of missing variables instead of starting half-configured."""
    try:
        settings.require_connectivity()
    except ConfigurationError as e:
        logger.error(e.message)
        for name in e.missing:
            logger.error(f"   - {name}")
        logger.error(e.details)
        sys.exit(1)


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    check_configuration()
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
