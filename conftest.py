"""
Pytest configuration and fixtures for the AI Fitness Planner tests.

Providers are replaced with in-memory fakes, so no API keys or network
access are needed.
"""

import json
from typing import Generator

import pytest
from flask.testing import FlaskClient

from app import create_app
from plan_normalizer import PlanMode
from providers import Base64Image, ProviderError

WORKOUT_MD = """| Day | Exercise | Sets | Reps | Rest |
| --- | --- | --- | --- | --- |
| Day 1 | [Goblet Squat](#) | 4 | 10 | 90s |
|  | [Push-up](#) | 3 | 12 | 60s |
| Day 2 | [Plank](#) | 3 | 45s | 30s |"""

DIET_MD = """| Day | Meal | Time | Portion/Notes |
| --- | --- | --- | --- |
| Day 1 | [Oatmeal with Berries](#) | 8:00 AM | 1 bowl |
|  | [Grilled Chicken Salad](#) | 1:00 PM | 200 g chicken |"""

TIPS = "Drink at least 2 liters of water.\n- Sleep 7-9 hours."


class FakePlanProvider:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def generate(self, prompt, mode):
        self.calls.append((prompt, mode))
        if self.error:
            raise self.error
        return self.response


class FakeImageProvider:
    def __init__(self, payload=None, error=None):
        self.payload = payload or Base64Image(data="aGVsbG8=", mime_type="image/jpeg")
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.payload


class FakeSpeechProvider:
    def __init__(self, audio=b"ID3fake-mp3", error=None):
        self.audio = audio
        self.error = error
        self.texts = []

    def synthesize(self, text):
        self.texts.append(text)
        if self.error:
            raise self.error
        return self.audio


@pytest.fixture
def profile() -> dict:
    """Form body as the page submits it"""
    return {
        "name": "Sam",
        "age": "29",
        "gender": "Other",
        "height": "170 cm",
        "weight": "68 kg",
        "fitnessGoal": "Muscle Gain",
        "fitnessLevel": "Beginner",
        "workoutLocation": "Home",
        "dietaryPreferences": "Veg",
    }


@pytest.fixture
def plan_json() -> str:
    return json.dumps({
        "workout_plan_markdown": WORKOUT_MD,
        "diet_plan_markdown": DIET_MD,
        "ai_tips": TIPS,
    })


@pytest.fixture
def plan_provider(plan_json) -> FakePlanProvider:
    return FakePlanProvider(response=plan_json)


@pytest.fixture
def image_provider() -> FakeImageProvider:
    return FakeImageProvider()


@pytest.fixture
def speech_provider() -> FakeSpeechProvider:
    return FakeSpeechProvider()


@pytest.fixture
def app(plan_provider, image_provider, speech_provider):
    app = create_app(
        {"TESTING": True, "PLAN_MODE": PlanMode.STRICT_SCHEMA.value, "RUN_EVALS": False},
        plan_provider=plan_provider,
        image_provider=image_provider,
        speech_provider=speech_provider,
    )
    return app


@pytest.fixture
def client(app) -> Generator[FlaskClient, None, None]:
    with app.test_client() as c:
        yield c


@pytest.fixture
def provider_error() -> ProviderError:
    return ProviderError("fake", "quota exceeded")
