import asyncio
import contextlib
import signal
import sys

from .app import NotifierApp
from .config import Settings, load_settings
from .errors import ConfigurationError, ReconciliationAccessError
from .logger import enable_file_logging, logger


async def serve(settings: Settings) -> int:
    app = NotifierApp(settings)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows, KeyboardInterrupt covers it there
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, app.request_shutdown)

    try:
        return await app.run()
    except ReconciliationAccessError as e:
        logger.critical(f"Could not rebuild player state from the log: {e}")
        return 1


def main() -> None:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.critical(str(e))
        sys.exit(2)

    if settings.logs_dir is not None:
        enable_file_logging(settings.logs_dir)

    try:
        exit_code = asyncio.run(serve(settings))
    except KeyboardInterrupt:
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
