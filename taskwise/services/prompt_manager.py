"""
Prompt management for the priority suggestion
"""

from taskwise.models.suggestion import PrioritySuggestionInput


class PromptManager:
    """Manager for GPT prompts"""

    SYSTEM_PROMPT = """You are a task prioritization expert. Analyze the task description and deadline to suggest a priority (high, medium, or low) and provide a brief reason for your suggestion.

Respond with ONLY a valid JSON object with the fields:
{
  "priority": "high" | "medium" | "low",
  "reason": "one or two sentences explaining the suggestion"
}"""

    USER_PROMPT_TEMPLATE = """Task Description: {description}
Deadline: {deadline}
Today: {today}

Respond with a priority (high, medium, or low) and a reason."""

    def get_system_prompt(self) -> str:
        """Get system prompt"""
        return self.SYSTEM_PROMPT

    def get_user_prompt(self, data: PrioritySuggestionInput, today: str) -> str:
        """
        Render the user prompt for one task

        Args:
            data: Task description and deadline
            today: Current date (YYYY-MM-DD) so the model can judge urgency

        Returns:
            Prompt text
        """
        return self.USER_PROMPT_TEMPLATE.format(
            description=data.description.strip(),
            deadline=data.deadline.strip(),
            today=today,
        )
