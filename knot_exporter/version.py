"""
Build identity of the exporter
"""

__version__ = "1.0.0"

# Replaced at packaging time
BUILD_TIME = "unknown"
GIT_COMMIT = "unknown"
