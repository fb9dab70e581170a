import sys
from typing import Optional

from lifecycle_http.app_factory import create_application
from lifecycle_http.logger import get_logger, log_fields
from lifecycle_http.server.domain.exceptions import StartupError
from lifecycle_http.settings import Settings, get_settings

logger = get_logger(__name__)


def run(settings: Optional[Settings] = None) -> int:
    """
    Wires the HTTP service and runs it until SIGINT or SIGTERM.

    Returns the process exit code.
    """
    settings = settings or get_settings()
    logger.info(
        "Starting HTTP service",
        extra=log_fields(environment=settings.environment),
    )

    try:
        application = create_application(settings)
    except StartupError as e:
        logger.error("Failed to build application", extra=log_fields(**e.to_dict()))
        return 1

    return application.run()


def main() -> int:
    return run()


if __name__ == "__main__":
    sys.exit(main())
