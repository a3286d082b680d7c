#!/usr/bin/env python3
"""
Plan Response Normalizer
Turns the raw text returned by the plan model into a validated Plan
(workout table, diet table, tips) or a classified error
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

SNIPPET_LIMIT = 200

WORKOUT_FIELD = 'workout_plan_markdown'
DIET_FIELD = 'diet_plan_markdown'
TIPS_FIELD = 'ai_tips'

# Tabular mode carries TAB-delimited text under these keys
WORKOUT_TABLE_FIELD = 'workout_plan_table'
DIET_TABLE_FIELD = 'diet_plan_table'


class PlanMode(str, Enum):
    STRICT_SCHEMA = 'strict_schema'
    BEST_EFFORT_JSON = 'best_effort_json'
    TABULAR_TEXT = 'tabular_text'


class ErrorKind(str, Enum):
    UNPARSABLE = 'unparsable'
    MISSING_FIELDS = 'missing_fields'


@dataclass(frozen=True)
class Plan:
    workout_plan_markdown: str
    diet_plan_markdown: str
    ai_tips: str = ''

    def to_dict(self) -> Dict[str, str]:
        return {
            WORKOUT_FIELD: self.workout_plan_markdown,
            DIET_FIELD: self.diet_plan_markdown,
            TIPS_FIELD: self.ai_tips,
        }


@dataclass(frozen=True)
class NormalizationError:
    kind: ErrorKind
    snippet: str = ''
    fields: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'snippet': self.snippet,
            'fields': list(self.fields),
        }


@dataclass(frozen=True)
class NormalizationResult:
    plan: Optional[Plan] = None
    error: Optional[NormalizationError] = None

    @property
    def ok(self) -> bool:
        return self.plan is not None


def parse_mode(value: Any) -> PlanMode:
    """
    Resolve a configured mode name ("strict_schema", "best-effort-json", ...)
    Raises ValueError for anything else
    """
    if isinstance(value, PlanMode):
        return value
    name = str(value or '').strip().lower().replace('-', '_')
    try:
        return PlanMode(name)
    except ValueError:
        valid = ', '.join(m.value for m in PlanMode)
        raise ValueError(f"Unknown plan mode {value!r} (expected one of: {valid})")


def coerce_text(value: Any) -> str:
    """Non-string values count as missing"""
    if isinstance(value, str):
        return value.strip()
    return ''


def _snippet(raw_text: Any) -> str:
    if not isinstance(raw_text, str):
        return ''
    return raw_text[:SNIPPET_LIMIT]


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(text)
    except (ValueError, TypeError, RecursionError):
        return None
    if isinstance(data, dict):
        return data
    return None


def extract_json_object(text: str, recover: bool = True) -> Optional[Dict[str, Any]]:
    """
    Parse a JSON object out of model output

    With recover=True, a failed direct parse falls back to the span between
    the first "{" and the last "}" (inclusive). Nothing else is repaired:
    truncated JSON, stray quotes and trailing commas still fail.
    Returns None when no object can be decoded.
    """
    if not isinstance(text, str):
        return None

    data = _loads_object(text)
    if data is not None or not recover:
        return data

    start = text.find('{')
    end = text.rfind('}')
    if start == -1 or end == -1 or end < start:
        return None
    return _loads_object(text[start:end + 1])


def _escape_cell(cell: str) -> str:
    return cell.strip().replace('|', '\\|')


def _render_row(cells) -> str:
    return '| ' + ' | '.join(cells) + ' |'


def tab_table_to_markdown(text: Any) -> str:
    r"""
    Convert TAB-delimited rows into a GitHub-flavored markdown table

    The first non-empty line is the header. A Day cell that repeats the
    previous row's day label is blanked so each day is shown once:

        Day\tExercise        | Day | Exercise |
        Day 1\tSquat    ->   | --- | --- |
        Day 1\tLunge         | Day 1 | Squat |
                             |  | Lunge |

    Empty input gives an empty string.
    """
    if not isinstance(text, str):
        return ''

    # Trim spaces only: a leading TAB is an empty Day cell, not padding
    lines = [line.strip(' \r') for line in text.splitlines()]
    lines = [line for line in lines if line.strip()]
    if not lines:
        return ''

    headers = [_escape_cell(cell) for cell in lines[0].split('\t')]
    output = [
        _render_row(headers),
        _render_row(['---'] * len(headers)),
    ]

    previous_day = None
    for line in lines[1:]:
        cells = [_escape_cell(cell) for cell in line.split('\t')]
        day = cells[0] or previous_day
        if previous_day is not None and day == previous_day:
            cells[0] = ''
        # Compare against the original label so a run of three stays merged;
        # a row that arrives with a blank Day belongs to the day above
        previous_day = day
        output.append(_render_row(cells))

    return '\n'.join(output)


def _extract_fields(raw_text: str, mode: PlanMode) -> Optional[Dict[str, str]]:
    """
    Mode-specific extraction. Returns {source_key: text} for the two
    tables plus tips, or None when the payload is unparsable.
    """
    if mode == PlanMode.STRICT_SCHEMA:
        data = extract_json_object(raw_text, recover=False)
        if data is None:
            return None
        return {
            WORKOUT_FIELD: coerce_text(data.get(WORKOUT_FIELD)),
            DIET_FIELD: coerce_text(data.get(DIET_FIELD)),
            TIPS_FIELD: coerce_text(data.get(TIPS_FIELD)),
        }

    data = extract_json_object(raw_text, recover=True)
    if data is None:
        return None

    if mode == PlanMode.TABULAR_TEXT:
        workout = data.get(WORKOUT_TABLE_FIELD)
        diet = data.get(DIET_TABLE_FIELD)
        return {
            WORKOUT_TABLE_FIELD: tab_table_to_markdown(workout if isinstance(workout, str) else ''),
            DIET_TABLE_FIELD: tab_table_to_markdown(diet if isinstance(diet, str) else ''),
            TIPS_FIELD: coerce_text(data.get(TIPS_FIELD)),
        }

    return {
        WORKOUT_FIELD: coerce_text(data.get(WORKOUT_FIELD)),
        DIET_FIELD: coerce_text(data.get(DIET_FIELD)),
        TIPS_FIELD: coerce_text(data.get(TIPS_FIELD)),
    }


def normalize(raw_text: str, mode: PlanMode) -> NormalizationResult:
    """
    Normalize one model response into a Plan

    Pure function of (raw_text, mode): no I/O, no retries, no fallback
    content. Always returns a NormalizationResult, never raises for
    malformed model output.
    """
    mode = parse_mode(mode)

    extracted = _extract_fields(raw_text, mode)
    if extracted is None:
        return NormalizationResult(error=NormalizationError(
            kind=ErrorKind.UNPARSABLE,
            snippet=_snippet(raw_text),
        ))

    if mode == PlanMode.TABULAR_TEXT:
        workout_key, diet_key = WORKOUT_TABLE_FIELD, DIET_TABLE_FIELD
    else:
        workout_key, diet_key = WORKOUT_FIELD, DIET_FIELD

    workout = extracted[workout_key].strip()
    diet = extracted[diet_key].strip()

    missing = [key for key, value in ((workout_key, workout), (diet_key, diet)) if not value]
    if missing:
        return NormalizationResult(error=NormalizationError(
            kind=ErrorKind.MISSING_FIELDS,
            snippet=_snippet(raw_text),
            fields=tuple(missing),
        ))

    return NormalizationResult(plan=Plan(
        workout_plan_markdown=workout,
        diet_plan_markdown=diet,
        ai_tips=extracted[TIPS_FIELD],
    ))
