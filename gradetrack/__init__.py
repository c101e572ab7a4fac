"""
GradeTrack: weighted grade and GPA tracking service.

Keeps per-user courses, semesters and graded assessments, and computes running
averages, the grade needed on remaining work, and term/cumulative GPA.
"""

__version__ = "1.0.0"
__author__ = "GradeTrack Development Team"
__description__ = "Weighted grade and GPA tracking service"
