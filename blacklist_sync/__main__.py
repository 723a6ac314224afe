"""
Package entry point for the blacklist sync service.
"""

import asyncio
import logging
import sys


def run_main() -> None:
    from .main import main

    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run_main()
