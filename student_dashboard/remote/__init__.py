"""
Remote collection access for student-dashboard.

Modules:
    client: StudentsApi, the REST client for the students collection
"""

from student_dashboard.remote.client import StudentsApi

__all__ = ["StudentsApi"]
