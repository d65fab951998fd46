"""Chart pattern detection engine for streaming OHLCV bars."""

import logging

__version__ = "0.1.0"

logging.getLogger("patternwatch").addHandler(logging.NullHandler())
