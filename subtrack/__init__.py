"""
SubTrack - Source Package

A personal subscription-expense tracker. Users record recurring
services, see their monthly spend and get reminded before billing days.

DESIGN PRINCIPLES:
1. Every stored amount is a monthly figure
2. One session, one store (guest data never mixes with account data)
3. Failures return the user to a stable, re-submittable form
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SubTrack Team"
