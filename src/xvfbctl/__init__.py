"""
xvfbctl - headless X displays for build and test pipelines

xvfbctl finds a free X display, reserves it against other builds on the same
host, runs Xvfb on it for the duration of a test phase and guarantees the
server and its reservation are cleaned up afterwards.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
