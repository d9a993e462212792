"""
Response models for user-visible outcomes
"""

from typing import Optional
from pydantic import BaseModel


class Notification(BaseModel):
    """Toast-style notification shown to the user"""
    title: str
    description: Optional[str] = None
    variant: str = "default"  # "default" or "destructive"


class ErrorResponse(BaseModel):
    """Error response model"""
    message: str
    error_code: Optional[str] = None
    field: Optional[str] = None
    details: Optional[dict] = None
