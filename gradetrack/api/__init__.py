"""
API module for the REST API implementation.
"""

from .rest_api import GradeTrackRestAPI, current_user, http_error

__all__ = [
    "GradeTrackRestAPI",
    "current_user",
    "http_error",
]
