"""
loom - local persistence core for personal multi-device telemetry
"""

__version__ = "0.1.0"
__logo__ = "🧶"
