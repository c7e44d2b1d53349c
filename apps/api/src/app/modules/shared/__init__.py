"""
Shared model building blocks.
"""

from app.modules.shared.models import BaseModel

__all__ = ["BaseModel"]
