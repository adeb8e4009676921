import logging
import logging.handlers
import os
import sys
import json
from datetime import datetime, timezone
from animestream.utilities.settings import get_setting

NOISY_LOGGERS = ('urllib3', 'aiohttp.access', 'charset_normalizer', 'asyncio')

class DynamicConsoleHandler(logging.StreamHandler):
    def __init__(self):
        super().__init__(sys.stdout)
        self.setLevel(self.get_level())

    def get_level(self):
        console_level = str(get_setting("Debug", "logging_level", "INFO"))
        return getattr(logging, console_level.upper(), logging.INFO)

class NoiseFilter(logging.Filter):
    def filter(self, record):
        return not record.name.startswith(NOISY_LOGGERS)

class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'name': record.name,
        }
        if isinstance(record.msg, dict):
            log_record.update(record.msg)
        else:
            log_record['message'] = record.getMessage()

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record['stack_info'] = self.formatStack(record.stack_info)

        return json.dumps(log_record)

def setup_debug_logging(log_dir):
    debug_handler = logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, 'debug.log'),
        maxBytes=50*1024*1024,
        backupCount=5,
        encoding='utf-8',
        errors='replace'
    )
    debug_handler.setLevel(logging.DEBUG)
    debug_handler.addFilter(NoiseFilter())

    formatter = logging.Formatter('%(asctime)s - %(filename)s:%(funcName)s:%(lineno)d - %(levelname)s - %(message)s')
    debug_handler.setFormatter(formatter)
    logging.getLogger().addHandler(debug_handler)

def setup_info_logging():
    console_handler = DynamicConsoleHandler()
    if get_setting("Debug", "log_format", "console") == 'json':
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S'))
    console_handler.addFilter(NoiseFilter())
    logging.getLogger().addHandler(console_handler)

def setup_api_logging(log_dir):
    api_logger = logging.getLogger('api_calls')
    api_logger.setLevel(logging.INFO)
    api_logger.propagate = False
    api_logger.handlers.clear()

    handler = logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, 'api_calls.log'),
        maxBytes=10*1024*1024,
        backupCount=5,
        encoding='utf-8',
        errors='replace'
    )
    handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s',
                                           datefmt='%Y-%m-%d %H:%M:%S'))
    api_logger.addHandler(handler)

def setup_logging():
    """Initialize logging configuration"""
    log_dir = os.environ.get('USER_LOGS', '/user/logs')
    os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    setup_debug_logging(log_dir)
    setup_info_logging()
    setup_api_logging(log_dir)
