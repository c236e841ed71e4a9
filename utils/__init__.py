"""
Utility modules for the Smart Event Scheduler
"""

from .logger import SmartCalendarLogger
from .validators import RequestValidator, DataSanitizer

__all__ = ['SmartCalendarLogger', 'RequestValidator', 'DataSanitizer']
