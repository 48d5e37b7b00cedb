"""
Students module - Student roster records.
"""

from app.modules.students.models import Student
from app.modules.students.repository import StudentRepository

__all__ = ["Student", "StudentRepository"]
