"""
Intern rotation scheduler.

Tracks interns as they rotate through an ordered catalog of hospital units:
which assignments are done, which is active today, and which are still ahead.
"""

__version__ = "1.0.0"
