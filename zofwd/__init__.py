"""zofwd reactive forwarding core."""

__version__ = '0.1.0'

import sys
if sys.version_info < (3, 10):  # pragma: no cover
    import platform
    raise NotImplementedError(
        'zofwd does not support Python %s. Python 3.10 or later required.' %
        platform.python_version())

# pylint: disable=wrong-import-position,wildcard-import

from zofwd.api import *  # noqa: E402
