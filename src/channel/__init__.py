"""
Control channel: message boundary and collaborators.
"""

from .control import ControlChannel
from .errors import ChannelError, InvalidPayloadError, UnknownOperationError
from .results import (
    OoniprobeResults,
    ResultsError,
    ResultsSource,
    last_start_time,
    parse_list_output,
)

__all__ = [
    "ControlChannel",
    "ChannelError",
    "InvalidPayloadError",
    "UnknownOperationError",
    "OoniprobeResults",
    "ResultsError",
    "ResultsSource",
    "last_start_time",
    "parse_list_output",
]
