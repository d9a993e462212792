"""
Priority suggestion models
"""

from pydantic import BaseModel, Field, field_validator
from taskwise.models.task import Priority


class PrioritySuggestionInput(BaseModel):
    """What the model is asked about: free text and a YYYY-MM-DD deadline"""
    description: str = Field(..., min_length=1)
    deadline: str = Field(..., min_length=1)


class PrioritySuggestion(BaseModel):
    """Suggested priority with the model's justification"""
    priority: Priority
    reason: str = ""

    @field_validator("priority", mode="before")
    @classmethod
    def _strict_label(cls, value):
        # only the three labels are accepted from the model
        if isinstance(value, str):
            return value.strip().lower()
        return value
