"""
Feature modules. Importing this package registers every ORM model on the
shared metadata.
"""

from schoolhub.modules.classrooms.models import Classroom
from schoolhub.modules.schools.models import School
from schoolhub.modules.students.models import Student
from schoolhub.modules.users.models import User, UserSchool

__all__ = ["Classroom", "School", "Student", "User", "UserSchool"]
