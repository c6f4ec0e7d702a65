"""
API Routers package.
"""

from . import run, autorun, config, prefs, results

__all__ = ["run", "autorun", "config", "prefs", "results"]
