"""
Application constants
"""

# OpenAI
OPENAI_DEFAULT_MODEL = "gpt-4o-mini"
OPENAI_FALLBACK_MODEL = "gpt-4o"
OPENAI_MAX_TOKENS = 300  # a priority label and one or two sentences of reasoning
OPENAI_TEMPERATURE = 0.2

# Tasks
TASK_CATEGORIES = ["work", "personal", "shopping", "other"]
CUSTOM_CATEGORY = "other"
TASK_DEFAULT_PRIORITY = "medium"
TASK_DEFAULT_CATEGORY = "personal"

# Document store collections
TASKS_COLLECTION = "tasks"
USERS_COLLECTION = "users"

# Authentication
PASSWORD_MIN_LENGTH = 6

# Messages shown to the user
MSG_SUGGESTION_FAILED = "Failed to get suggestion from AI. Please try again."
MSG_SUGGESTION_INVALID_INPUT = "Invalid input."
MSG_WRONG_PASSWORD = "The current password you entered is incorrect."
MSG_AUTH_GENERIC = "An unexpected error occurred. Please try again."
MSG_PERMISSION_DENIED = "You don't have permission to perform this action."
MSG_ANOTHER_TIMER_ACTIVE = "Please stop the other timer before starting a new one."
MSG_GENERIC_ERROR = "Something went wrong. Please try again."

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "taskwise.log"

# Overview charts
WEEK_STARTS_ON = 0  # Monday
