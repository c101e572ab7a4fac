"""
Enumerations and constants for the GradeTrack service.
"""

from enum import Enum


class GradeType(Enum):
    """How the grade cells of a course are entered."""
    PERCENTAGE = "percentage"
    LETTERS = "letters"
    POINTS = "points"


class SemesterStatus(Enum):
    """Lifecycle status of a semester."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class NeededOutcome(Enum):
    """Classification of a projected grade needed on remaining work."""
    ACHIEVABLE = "achievable"
    UNREACHABLE = "unreachable"  # needs more than 100
    ALREADY_MET = "already_met"  # target exceeded even with 0
