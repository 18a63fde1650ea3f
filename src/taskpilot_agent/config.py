# taskpilot_agent/config.py
from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# Reasoning loop: hard cap on model invocations per user turn
DEFAULT_MAX_ITERATIONS = int(os.getenv("TASKPILOT_MAX_ITERATIONS", "10"))

# Context cache sizing (seconds / entries)
DEFAULT_CONTEXT_CACHE_TTL = float(os.getenv("TASKPILOT_CONTEXT_CACHE_TTL", "300"))
DEFAULT_CONTEXT_CACHE_SIZE = int(os.getenv("TASKPILOT_CONTEXT_CACHE_SIZE", "100"))

# Cache key components
CONTEXT_CACHE_BUCKET_SECONDS = 15 * 60
CONTEXT_CACHE_MESSAGE_PREFIX = 50

# Change-sets longer than this escalate one impact level
IMPACT_ESCALATION_THRESHOLD = 3

# Model endpoint: can be overridden by environment variable
DEFAULT_MODEL = os.getenv("TASKPILOT_MODEL", "gpt-4o-mini")
DEFAULT_MODEL_BASE_URL = os.getenv("TASKPILOT_MODEL_BASE_URL", "https://api.openai.com/v1")
DEFAULT_MODEL_API_KEY = os.getenv("TASKPILOT_MODEL_API_KEY")
DEFAULT_MODEL_TIMEOUT = float(os.getenv("TASKPILOT_MODEL_TIMEOUT", "60"))
