"""Data models for the history ring and parameter pairs."""

from .history import HistoryRing, HISTORY_CAPACITY
from .parameters import ParameterPair, ParameterError, MAX_NAME_LENGTH
