# Application Utils Package
from .formatting import format_interval, format_interval_range

__all__ = ["format_interval", "format_interval_range"]
