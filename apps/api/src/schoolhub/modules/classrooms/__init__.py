"""
Classrooms module - Classrooms and their resources within a school.
"""

from schoolhub.modules.classrooms.models import Classroom
from schoolhub.modules.classrooms.repository import ClassroomRepository

__all__ = ["Classroom", "ClassroomRepository"]
