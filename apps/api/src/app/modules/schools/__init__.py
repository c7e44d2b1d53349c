"""
Schools module - School tenant table.
"""

from app.modules.schools.models import School, SchoolStatus

__all__ = ["School", "SchoolStatus"]
