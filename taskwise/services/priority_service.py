"""
Priority suggestion service
"""

from typing import Optional
from pydantic import ValidationError as PydanticValidationError
from taskwise.api.openai_client import OpenAIClient
from taskwise.config.constants import MSG_SUGGESTION_INVALID_INPUT
from taskwise.models.suggestion import PrioritySuggestion, PrioritySuggestionInput
from taskwise.services.prompt_manager import PromptManager
from taskwise.utils.date_utils import get_current_date
from taskwise.utils.error_handler import SuggestionError, ValidationError
from taskwise.utils.logger import logger


class PriorityService:
    """Service for suggesting task priorities using GPT"""

    def __init__(self, openai_client: Optional[OpenAIClient] = None):
        """
        Initialize priority service

        Args:
            openai_client: OpenAI client (created from settings when omitted)
        """
        self.openai_client = openai_client or OpenAIClient()
        self.prompt_manager = PromptManager()
        self.logger = logger

    async def suggest_priority(self, description: str, deadline: str) -> PrioritySuggestion:
        """
        Suggest a priority for a task

        Args:
            description: Free text about the task (title and description)
            deadline: Due date as YYYY-MM-DD

        Returns:
            PrioritySuggestion with priority label and reason

        Raises:
            ValidationError: If description or deadline is empty
            SuggestionError: If the model call or its reply fails
        """
        try:
            data = PrioritySuggestionInput(
                description=(description or "").strip(),
                deadline=(deadline or "").strip(),
            )
        except PydanticValidationError:
            raise ValidationError(MSG_SUGGESTION_INVALID_INPUT)

        self.logger.info(f"[Priority] Requesting suggestion for deadline {data.deadline}")

        try:
            reply = await self.openai_client.complete_json(
                system_prompt=self.prompt_manager.get_system_prompt(),
                user_prompt=self.prompt_manager.get_user_prompt(
                    data, today=get_current_date().isoformat()
                ),
            )
            suggestion = PrioritySuggestion.model_validate(reply)
        except Exception as e:
            self.logger.error(f"[Priority] Suggestion failed: {e}", exc_info=True)
            raise SuggestionError() from e

        self.logger.info(f"[Priority] Suggested '{suggestion.priority.value}'")
        return suggestion
