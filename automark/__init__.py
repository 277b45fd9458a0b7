"""
automark - Keep apt's automatic/manual flags consistent

Marks packages that other packages depend on as automatically installed,
and detects the dependency cycles that would otherwise let apt autoremove
whole groups of packages nobody asked for:
- Control-format metadata parser
- Virtual package (Provides) resolution
- Cycle detection and reporting
"""

__version__ = "0.1.0"
__author__ = "automark contributors"
