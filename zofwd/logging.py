"""Logging setup for the zofwd command line."""

import logging.config

LOG_FORMAT = '%(asctime)s.%(msecs)03d %(name)-6s %(levelname)-8s %(message)s'
LOG_DATEFMT = '%b %d %H:%M:%S'

# Rotating log file limits.
LOGFILE_MAX_BYTES = 2**20
LOGFILE_BACKUPS = 10


def logging_config(loglevel, logfile=None):
    """Return a `logging.config.dictConfig` dict for the zofwd CLI.

    Records from the zofwd package at `loglevel` or above go to stderr. If
    `logfile` is set, they go to a rotating log file instead and stderr
    only shows critical events. Other libraries (asyncio, aiohttp) log
    warnings and above.
    """
    handlers = {
        'stderr': {
            'class': 'logging.StreamHandler',
            'formatter': 'zofwd',
            'stream': 'ext://sys.stderr',
            'level': 'CRITICAL' if logfile else 'NOTSET'
        }
    }
    if logfile:
        handlers['logfile'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'zofwd',
            'filename': logfile,
            'maxBytes': LOGFILE_MAX_BYTES,
            'backupCount': LOGFILE_BACKUPS,
            'encoding': 'utf8'
        }

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'zofwd': {
                'format': LOG_FORMAT,
                'datefmt': LOG_DATEFMT
            }
        },
        'handlers': handlers,
        'loggers': {
            __package__: {
                'level': loglevel.upper()
            }
        },
        'root': {
            'level': 'WARNING',
            'handlers': list(handlers)
        }
    }


def init_logging(loglevel, logfile=None):
    """Configure logging for the zofwd command line.

    Calling it again replaces the previous configuration.
    """
    logging.config.dictConfig(logging_config(loglevel, logfile))
    logging.captureWarnings(True)
