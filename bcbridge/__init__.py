"""bcbridge: arbitrary-precision decimal arithmetic for embedded scripts."""

from bcbridge.version import __version__, get_version

__all__ = ["__version__", "get_version"]
