"""
strandlab - strand-based learning assessment engine.

Scores answers across four question kinds, sequences level blocks through a
feedback state machine, grades written work against rubrics and aggregates
per-strand progress and badges.
"""

__version__ = "0.1.0"
