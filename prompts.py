"""
Prompt construction for plan and image requests
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from plan_normalizer import (
    PlanMode,
    WORKOUT_FIELD,
    DIET_FIELD,
    TIPS_FIELD,
    WORKOUT_TABLE_FIELD,
    DIET_TABLE_FIELD,
)

# Form key -> UserProfile attribute. "name" is optional on the form.
PROFILE_FIELDS = {
    'name': 'name',
    'age': 'age',
    'gender': 'gender',
    'height': 'height',
    'weight': 'weight',
    'fitnessGoal': 'fitness_goal',
    'fitnessLevel': 'fitness_level',
    'workoutLocation': 'workout_location',
    'dietaryPreferences': 'dietary_preferences',
}
OPTIONAL_PROFILE_FIELDS = {'name'}

PLAN_SCHEMA = {
    'type': 'object',
    'properties': {
        WORKOUT_FIELD: {'type': 'string'},
        DIET_FIELD: {'type': 'string'},
        TIPS_FIELD: {'type': 'string'},
    },
    'required': [WORKOUT_FIELD, DIET_FIELD, TIPS_FIELD],
}

IMAGE_PROMPTS = {
    'workout': "Photorealistic image of a person performing a perfect {item}. Focus on correct form, clarity, and visible muscle engagement.",
    'food': "High-quality food photography of freshly prepared {item}. Bright, clean, visually appealing presentation.",
}


class ProfileError(ValueError):
    """Raised when the submitted form is missing or has invalid fields"""

    def __init__(self, fields: List[str]):
        self.fields = fields
        super().__init__(f"Missing or invalid fields: {', '.join(fields)}")


@dataclass(frozen=True)
class UserProfile:
    name: str
    age: int
    gender: str
    height: str
    weight: str
    fitness_goal: str
    fitness_level: str
    workout_location: str
    dietary_preferences: str

    @classmethod
    def from_request(cls, data: Any) -> 'UserProfile':
        """
        Build a profile from the form's JSON body
        Only presence is checked, plus age being a positive whole number
        """
        if not isinstance(data, dict):
            raise ProfileError(list(PROFILE_FIELDS))

        values = {}
        bad = []
        for key, attr in PROFILE_FIELDS.items():
            raw = data.get(key)
            if key == 'age':
                try:
                    age = int(str(raw).strip())
                except (TypeError, ValueError):
                    age = 0
                if age <= 0:
                    bad.append(key)
                values[attr] = age
                continue

            value = str(raw).strip() if raw is not None else ''
            if not value and key not in OPTIONAL_PROFILE_FIELDS:
                bad.append(key)
            values[attr] = value

        if bad:
            raise ProfileError(bad)
        return cls(**values)


TABLE_RULES = """Workout table columns: Day | Exercise | Sets | Reps | Rest
Diet table columns: Day | Meal | Time | Portion/Notes
Write every exercise name and every meal name as a markdown link with "#" as the target, e.g. [Goblet Squat](#) or [Greek Yogurt Parfait](#). Use only the plain name as the link text.
Cover Day 1 through Day 7."""


def _profile_block(profile: UserProfile) -> str:
    name = profile.name or "the user"
    return f"""User Details:
- Name: {name}
- Age: {profile.age}, Gender: {profile.gender}, Height: {profile.height}, Weight: {profile.weight}
- Goal: {profile.fitness_goal}
- Fitness Level: {profile.fitness_level}
- Workout Location: {profile.workout_location}
- Dietary Preference: {profile.dietary_preferences}"""


def build_plan_prompt(profile: UserProfile, mode: PlanMode) -> str:
    """
    Build the plan-generation prompt for the configured response mode
    """
    intro = """You are an expert AI Fitness Coach. Generate a highly personalized 7-day Workout Plan and Diet Plan for the user based on the following details."""

    if mode == PlanMode.STRICT_SCHEMA:
        output = f"""Output Format:
Call the submit_plan tool once.
- {WORKOUT_FIELD}: a GitHub-flavored markdown table (header row, "| --- |" alignment row, one row per exercise)
- {DIET_FIELD}: a GitHub-flavored markdown table in the same style
- {TIPS_FIELD}: 3-5 short lifestyle and recovery tips as plain text
{TABLE_RULES}"""
    elif mode == PlanMode.TABULAR_TEXT:
        output = f"""Output Format:
Respond with ONLY a JSON object with these keys:
- "{WORKOUT_TABLE_FIELD}": the workout table as TAB-separated text, one row per line, first line is the header
- "{DIET_TABLE_FIELD}": the diet table as TAB-separated text in the same style
- "{TIPS_FIELD}": 3-5 short lifestyle and recovery tips as plain text
Separate cells with a single TAB character, never with pipes. Repeat the Day label on every row.
{TABLE_RULES}"""
    else:
        output = f"""Output Format:
Respond with ONLY a JSON object, no commentary before or after it, with these string keys:
- "{WORKOUT_FIELD}": a GitHub-flavored markdown table (header row, "| --- |" alignment row, one row per exercise)
- "{DIET_FIELD}": a GitHub-flavored markdown table in the same style
- "{TIPS_FIELD}": 3-5 short lifestyle and recovery tips as plain text
Escape newlines inside strings as \\n.
{TABLE_RULES}"""

    return f"""{intro}

{_profile_block(profile)}

{output}"""


def build_image_prompt(item: str, category: str) -> str:
    """
    Prompt for illustrating one plan item
    category is "workout" or "food"; anything else raises ValueError
    """
    template = IMAGE_PROMPTS.get(category) if isinstance(category, str) else None
    if template is None:
        raise ValueError(f"Invalid type {category!r} (expected workout or food)")
    return template.format(item=item.strip())


def profile_summary(profile: UserProfile) -> Dict[str, Any]:
    """Non-identifying profile fields for log lines"""
    return {
        'goal': profile.fitness_goal,
        'level': profile.fitness_level,
        'location': profile.workout_location,
        'diet': profile.dietary_preferences,
    }
