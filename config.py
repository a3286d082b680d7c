"""
Configuration for the AI Fitness Planner
Values come from the environment (or a local .env file)
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Plan generation (Claude)
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
PLAN_MODEL = os.getenv("PLAN_MODEL", "claude-3-haiku-20240307")
# One response mode per deployment: strict_schema, best_effort_json or tabular_text
PLAN_MODE = os.getenv("PLAN_MODE", "strict_schema")
PLAN_MAX_TOKENS = int(os.getenv("PLAN_MAX_TOKENS", "4096"))

# Image generation (Imagen)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "imagen-3.0-generate-002")

# Speech (ElevenLabs)
ELEVENLABS_API_KEY = os.getenv("ELEVENLABS_API_KEY")
ELEVENLABS_VOICE_ID = os.getenv("ELEVENLABS_VOICE_ID", "21m00Tcm4azwk8vH3dYJ")
SPEECH_MODEL = os.getenv("SPEECH_MODEL", "eleven_multilingual_v2")
SPEECH_MAX_CHARS = int(os.getenv("SPEECH_MAX_CHARS", "5000"))

REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "60"))
RUN_EVALS = os.getenv("RUN_EVALS", "false").lower() == "true"
PORT = int(os.getenv("PORT", "5001"))


def as_dict():
    """Uppercase settings, in the shape Flask's app.config expects"""
    return {
        'ANTHROPIC_API_KEY': ANTHROPIC_API_KEY,
        'PLAN_MODEL': PLAN_MODEL,
        'PLAN_MODE': PLAN_MODE,
        'PLAN_MAX_TOKENS': PLAN_MAX_TOKENS,
        'GEMINI_API_KEY': GEMINI_API_KEY,
        'IMAGE_MODEL': IMAGE_MODEL,
        'ELEVENLABS_API_KEY': ELEVENLABS_API_KEY,
        'ELEVENLABS_VOICE_ID': ELEVENLABS_VOICE_ID,
        'SPEECH_MODEL': SPEECH_MODEL,
        'SPEECH_MAX_CHARS': SPEECH_MAX_CHARS,
        'REQUEST_TIMEOUT': REQUEST_TIMEOUT,
        'RUN_EVALS': RUN_EVALS,
        'PORT': PORT,
    }
