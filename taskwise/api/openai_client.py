"""
OpenAI API client
"""

import json
import re
from typing import Optional, Dict, Any, List
from openai import AsyncOpenAI
from taskwise.config.settings import settings
from taskwise.config.constants import (
    OPENAI_DEFAULT_MODEL,
    OPENAI_FALLBACK_MODEL,
    OPENAI_MAX_TOKENS,
    OPENAI_TEMPERATURE,
)
from taskwise.utils.logger import logger


class OpenAIClient:
    """Client for OpenAI API"""

    def __init__(self, api_key: Optional[str] = None):
        """
        Initialize OpenAI client

        Args:
            api_key: API key (defaults to settings)
        """
        self.api_key = api_key or settings.OPENAI_API_KEY
        self.client = AsyncOpenAI(api_key=self.api_key, max_retries=0)
        self.model = settings.OPENAI_MODEL or OPENAI_DEFAULT_MODEL
        self.fallback_model = settings.OPENAI_FALLBACK_MODEL or OPENAI_FALLBACK_MODEL
        self.logger = logger

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: float = OPENAI_TEMPERATURE,
        max_tokens: int = OPENAI_MAX_TOKENS,
    ) -> str:
        """
        Get chat completion from OpenAI

        Args:
            messages: List of message dictionaries with 'role' and 'content'
            model: Model to use (defaults to configured model)
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response

        Returns:
            Response text

        Raises:
            Exception: If API call fails on both the main and fallback model
        """
        model = model or self.model

        try:
            self.logger.debug(f"Calling OpenAI API with model {model}")

            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )

            content = response.choices[0].message.content or ""
            self.logger.debug(f"OpenAI API response: {content[:100]}...")

            return content

        except Exception as e:
            self.logger.error(f"OpenAI API error: {e}")

            # Try fallback model if main model fails
            if model != self.fallback_model:
                self.logger.warning(f"Trying fallback model {self.fallback_model}")
                return await self.chat_completion(
                    messages=messages,
                    model=self.fallback_model,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )

            raise

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
    ) -> Dict[str, Any]:
        """
        Ask for a JSON object and parse it from the reply

        Args:
            system_prompt: Instructions for the model
            user_prompt: The request itself

        Returns:
            Parsed JSON object

        Raises:
            ValueError: If the reply holds no parseable JSON object
        """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        response = await self.chat_completion(messages=messages)
        parsed = extract_json_object(response)
        self.logger.debug(f"Parsed JSON reply: {parsed}")
        return parsed


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Extract the first JSON object from a model reply

    Tolerates markdown code fences and prose around the object.

    Args:
        text: Raw reply

    Returns:
        Parsed object

    Raises:
        ValueError: If no JSON object can be parsed
    """
    if not text:
        raise ValueError("Empty reply")

    json_match = re.search(r'\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}', text, re.DOTALL)
    if json_match:
        json_str = json_match.group(0)
    else:
        json_str = text.strip()

    # Clean up fences
    json_str = json_str.strip()
    if json_str.startswith('```json'):
        json_str = json_str[7:]
    if json_str.startswith('```'):
        json_str = json_str[3:]
    if json_str.endswith('```'):
        json_str = json_str[:-3]
    json_str = json_str.strip()

    try:
        parsed = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ValueError(f"Could not parse JSON from reply: {json_str[:200]}") from e

    if not isinstance(parsed, dict):
        raise ValueError("Reply JSON is not an object")
    return parsed
