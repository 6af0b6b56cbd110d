"""
Centralized logging configuration for the raffle server
Console output plus an optional rotating log file
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

# Top-level loggers of this project; module loggers propagate up to these
PROJECT_LOGGERS = ('tip_raffle', 'core', 'utils', 'server')


def setup_logging(log_level=None, log_file=None, logger_names=PROJECT_LOGGERS):
    """
    Setup logging with console and optional file handlers

    Args:
        log_level: Logging level name (default: LOG_LEVEL env var, then INFO)
        log_file: Optional path to log file (default: LOG_FILE env var)
        logger_names: Top-level logger names to configure

    Returns:
        logging.Logger: the first configured logger
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')
    if log_file is None:
        log_file = os.getenv('LOG_FILE') or None

    numeric_level = getattr(logging, str(log_level).upper(), logging.INFO)

    simple_formatter = logging.Formatter(
        fmt='[%(asctime)s] %(levelname)-8s %(message)s',
        datefmt='%H:%M:%S'
    )
    detailed_formatter = logging.Formatter(
        fmt='[%(asctime)s] %(levelname)-8s [%(name)s.%(funcName)s:%(lineno)d] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(simple_formatter)
    handlers.append(console_handler)

    file_error = None
    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            # 10MB max, keep 5 backups
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(detailed_formatter)
            handlers.append(file_handler)
        except OSError as e:
            file_error = e

    configured = []
    for name in logger_names:
        logger = logging.getLogger(name)
        logger.setLevel(numeric_level)
        logger.handlers.clear()
        for handler in handlers:
            logger.addHandler(handler)
        logger.propagate = False
        configured.append(logger)

    main_logger = configured[0] if configured else logging.getLogger()
    if file_error:
        main_logger.error(f"Failed to setup file logging: {file_error}")
    elif log_file:
        main_logger.info(f"File logging enabled: {log_file}")

    return main_logger


def log_route_access(logger, route, method='GET', admin=False):
    """Log route access with context"""
    context_str = " [admin]" if admin else ""
    logger.info(f"{method} {route}{context_str}")


def log_api_call(logger, api_name, endpoint, status_code=None, duration=None):
    """Log external API calls"""
    msg = f"API Call: {api_name} -> {endpoint}"
    if status_code:
        msg += f" [HTTP {status_code}]"
    if duration:
        msg += f" ({duration:.2f}s)"
    logger.info(msg)
