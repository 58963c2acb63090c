import logging
import os


def _env(name, default):
    return os.environ.get(f'CHATHUB_{name}', default)


def _env_flag(name, default=False):
    value = _env(name, None)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


SERVER_HOST = _env('SERVER_HOST', 'localhost')
SERVER_PORT = int(_env('SERVER_PORT', 8765))

MAX_MESSAGE_SIZE = int(_env('MAX_MESSAGE_SIZE', 1024 * 1024))
MAX_QUEUE_SIZE = int(_env('MAX_QUEUE_SIZE', 200))
SEND_TIMEOUT = float(_env('SEND_TIMEOUT', 5.0))

# When set, messages to a room the sender is not currently in are dropped
REQUIRE_ROOM_MEMBERSHIP = _env_flag('REQUIRE_ROOM_MEMBERSHIP')

IDENTITY_HEADER = _env('IDENTITY_HEADER', 'X-Chat-User')
UNKNOWN_USER = 'Unknown User'

LOG_FILE = _env('LOG_FILE', 'chat_server.log')
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger('chathub')


def configure_logging(level=logging.INFO, log_file=LOG_FILE):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers
    )
