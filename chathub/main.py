import argparse
import asyncio
import logging

from chathub.config import logger, configure_logging, SERVER_HOST, SERVER_PORT, LOG_FILE
from chathub.server import start_server


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description='Multi-room chat presence and routing server')
    ap.add_argument('--host', default=SERVER_HOST)
    ap.add_argument('--port', type=int, default=SERVER_PORT)
    ap.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    ap.add_argument('--log-file', default=LOG_FILE, help='empty string disables the log file')
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    configure_logging(getattr(logging, args.log_level), args.log_file)

    try:
        asyncio.run(start_server(args.host, args.port))
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)


if __name__ == "__main__":
    main()
