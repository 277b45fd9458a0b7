"""Core modules for automark"""

from .control import DependencyRecord, parse_control
from .resolution import CycleReport, detect_cycles

__all__ = ['DependencyRecord', 'parse_control', 'CycleReport', 'detect_cycles']
