"""
Roster Schemas
"""

from datetime import date

from pydantic import BaseModel, ConfigDict


class StudentInfo(BaseModel):
    """Subset of student data included with attendance records."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    date_of_birth: date | None = None
