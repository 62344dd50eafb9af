"""
Exporter error taxonomy.

Everything below StartupError is recoverable at line or cycle granularity;
only StartupError (and ConfigError) is allowed to stop the process.
"""

from __future__ import annotations

from typing import Optional


class ExporterError(Exception):
    """Base for every error the exporter raises on purpose."""


class ParseError(ExporterError):
    """A token or a single stats line could not be parsed."""


class CycleFailure(ExporterError):
    """A whole capture cycle produced nothing publishable."""


class CollectorError(CycleFailure):
    """The stats subprocess did not give us usable output."""


class CollectorTimeout(CollectorError):

    def __init__(self, timeout: float):
        super().__init__(f"stats command did not exit within {timeout:.1f}s")
        self.timeout = timeout


class RuntimeUnavailable(CollectorError):

    def __init__(self, returncode: int, stderr: str = ""):
        detail = stderr.strip() or "no error output"
        super().__init__(f"stats command exited with status {returncode}: {detail}")
        self.returncode = returncode
        self.stderr = stderr


class SinkDeliveryError(ExporterError):

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StartupError(ExporterError):
    """Fatal: the exporter cannot start."""


class ConfigError(StartupError):
    """Options that don't make sense together."""
