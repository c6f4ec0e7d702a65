"""
probe-control: test group sequencing and autorun reminders for a
desktop measurement probe.
"""

__version__ = "0.3.0"
