"""Vessel console: REST backend and console front end.

The backend lives in :mod:`muirgen.api`; it is not imported here so the
client can run without server configuration.
"""

__version__ = "0.1.0"
