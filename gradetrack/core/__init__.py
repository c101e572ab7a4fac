"""
Core module containing the domain model and the grade arithmetic.
"""

from .entities import *
from .enums import *
from .exceptions import *
from .grading import *
from .gpa import *
from .interfaces import *

__all__ = [
    # Entities
    "AbstractEntity",
    "Course",
    "GradeItem",
    "Semester",
    "DEFAULT_CREDIT_HOURS",

    # Grading
    "LetterThreshold",
    "GradeEntry",
    "WeightedAverage",
    "CalculationResult",
    "FinalExamResult",
    "DEFAULT_LETTER_THRESHOLDS",
    "LETTER_GRADE_PERCENTAGES",
    "resolve_letter",
    "letter_to_percent",
    "validate_thresholds",
    "weighted_average",
    "needed_grade",
    "classify_needed",
    "final_exam_needed",
    "calculate",

    # GPA
    "LETTER_TO_GPA",
    "GpaEntry",
    "GpaResult",
    "CourseStanding",
    "TermSummary",
    "CumulativeSummary",
    "calculate_gpa",
    "course_standing",
    "cumulative_summary",

    # Interfaces
    "Repository",

    # Enums
    "GradeType",
    "SemesterStatus",
    "NeededOutcome",

    # Exceptions
    "GradeTrackException",
    "ValidationError",
    "AuthenticationError",
    "ResourceNotFoundError",
    "ConcurrencyError",
    "PersistenceError",
    "ConfigurationError",
]
