"""
Structured logging for userauth.

Loggers obtained here write one JSON object per record to stderr, so that the
service logs can be shipped without further parsing.

.. code-block:: python

   from userauth import logging
   logger = logging.getLogger(__name__)

"""

import logging
import os
import sys

from pythonjsonlogger import jsonlogger

ROOT = 'userauth'
FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'

_configured = False


def _configure() -> None:
    global _configured
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(jsonlogger.JsonFormatter(
        FORMAT,
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
    ))
    root = logging.getLogger(ROOT)
    root.addHandler(handler)
    root.setLevel(int(os.environ.get('LOGLEVEL', logging.INFO)))
    _configured = True


def getLogger(name: str) -> logging.Logger:
    """Get a logger that emits JSON, configuring the package root once."""
    if not _configured:
        _configure()
    return logging.getLogger(name)


def setLevel(level: int) -> None:
    """Change the level of every userauth logger."""
    logging.getLogger(ROOT).setLevel(level)
