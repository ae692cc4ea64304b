"""
Students module - Enrollment, transfers and status changes.
"""

from schoolhub.modules.students.models import EnrollmentStatus, Student

__all__ = ["EnrollmentStatus", "Student"]
