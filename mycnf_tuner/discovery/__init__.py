"""
Discovery module - Gathers host resources.

Components:
- ResourceDetector: total memory and CPU count from /proc
"""

from .system import ResourceDetector, DetectorConfig

__all__ = ["ResourceDetector", "DetectorConfig"]
