"""
Work Schedule

Offline shift calendar with local persistence, shift availability rules
and monthly earnings calculation.
"""

__version__ = "3.0.0"
