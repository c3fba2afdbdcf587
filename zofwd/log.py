"""Logging configuration."""

import logging
import os

logger = logging.getLogger(__package__)

ZOFWDDEBUG = int(os.getenv('ZOFWDDEBUG', '0'))

if ZOFWDDEBUG > 0:  # pragma: no cover
    logging.basicConfig()
    logger.setLevel(logging.DEBUG)
    logger.debug('ZOFWDDEBUG=%d enabled', ZOFWDDEBUG)
