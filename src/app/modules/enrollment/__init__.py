"""
Enrollment module - Admission decisions on student enrollment applications.
"""

from .admin_router import router as admin_router

__all__ = ["admin_router"]
