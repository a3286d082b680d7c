#!/usr/bin/env python3
"""
Plan Table Parser
Reads the markdown tables of a generated plan back into rows and pulls out
the clickable items (exercise and meal links) the page turns into image
requests
"""

import re
from typing import Dict, List, Any, Optional

LINK_PATTERN = re.compile(r'^\[([^\]]+)\]\(([^)]*)\)$')
INLINE_LINK_PATTERN = re.compile(r'\[([^\]]+)\]\(([^)]*)\)')
ALIGNMENT_CELL = re.compile(r'^:?-{3,}:?$')


def split_table_row(line: str) -> List[str]:
    """
    Split one markdown table line into trimmed cells

    Formats supported:
    - "| Day 1 | [Squat](#) | 4 |"
    - "Day 1 | [Squat](#) | 4" (no outer pipes)
    - "| Day 1 | curl \\| press | 4 |" (escaped pipe stays in the cell)
    """
    line = line.strip()
    if line.startswith('|'):
        line = line[1:]
    if line.endswith('|') and not line.endswith('\\|'):
        line = line[:-1]

    cells = []
    current = []
    i = 0
    while i < len(line):
        char = line[i]
        if char == '\\' and i + 1 < len(line) and line[i + 1] == '|':
            current.append('|')
            i += 2
            continue
        if char == '|':
            cells.append(''.join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    cells.append(''.join(current).strip())
    return cells


def is_alignment_row(cells: List[str]) -> bool:
    """Check for the "| --- | :---: |" row under the header"""
    return bool(cells) and all(ALIGNMENT_CELL.match(cell) for cell in cells)


def parse_markdown_table(markdown: str) -> Dict[str, Any]:
    """
    Parse the first markdown table found in the text

    Returns headers, data rows (list of cell lists) and whether the
    alignment row was present. Lines before or after the table are ignored.
    """
    result = {
        'headers': [],
        'rows': [],
        'has_alignment': False,
        'row_count': 0
    }
    if not markdown:
        return result

    in_table = False
    for raw_line in markdown.split('\n'):
        line = raw_line.strip()
        if not line.startswith('|'):
            if in_table:
                break
            continue

        cells = split_table_row(line)
        if not in_table:
            result['headers'] = cells
            in_table = True
            continue

        if not result['has_alignment'] and not result['rows'] and is_alignment_row(cells):
            result['has_alignment'] = True
            continue

        result['rows'].append(cells)

    result['row_count'] = len(result['rows'])
    return result


def parse_link(cell: str) -> Optional[Dict[str, str]]:
    """
    Parse a cell that is exactly one markdown link

    "[Grilled Chicken](#)" -> {'text': 'Grilled Chicken', 'target': '#'}
    Plain text cells return None (they are not clickable).
    """
    match = LINK_PATTERN.match(cell.strip())
    if not match:
        return None
    text = match.group(1).strip()
    if not text:
        return None
    return {'text': text, 'target': match.group(2).strip()}


def extract_items(markdown: str) -> List[str]:
    """
    Return every link text in the plan, in order, without duplicates

    These are the item names sent verbatim to image generation; the link
    target is ignored.
    """
    items = []
    seen = set()
    for match in INLINE_LINK_PATTERN.finditer(markdown or ''):
        text = match.group(1).strip()
        if text and text not in seen:
            seen.add(text)
            items.append(text)
    return items


def strip_inline_markdown(text: str) -> str:
    """Links to their text, then drop emphasis, headings and list bullets"""
    text = INLINE_LINK_PATTERN.sub(lambda m: m.group(1), text)
    text = re.sub(r'(\*\*|__|\*|_|`)', '', text)
    text = re.sub(r'^\s{0,3}#{1,6}\s*', '', text)
    text = re.sub(r'^\s*(?:[-+]|\d+[.)])\s+', '', text)
    return text.strip()


def table_to_sentences(table: Dict[str, Any]) -> List[str]:
    """
    Turn parsed table rows into spoken sentences

    A blanked Day cell inherits the day of the row above, so
    "| Day 1 | Squat |" followed by "|  | Lunge |" reads as
    "Day 1: Squat." and "Day 1: Lunge."
    """
    sentences = []
    current_day = ''
    for cells in table['rows']:
        cells = [strip_inline_markdown(cell) for cell in cells]
        if not any(cells):
            continue
        if cells[0]:
            current_day = cells[0]
        details = ', '.join(cell for cell in cells[1:] if cell)
        if current_day and details:
            sentences.append(f"{current_day}: {details}.")
        elif details:
            sentences.append(f"{details}.")
        else:
            sentences.append(f"{current_day}.")
    return sentences


def to_speech_text(markdown: str) -> str:
    """
    Plain-text version of a plan section for speech synthesis

    Tables become one sentence per row, everything else keeps its lines
    with markdown markup removed.
    """
    if not markdown:
        return ''

    parts = []
    table_lines = []

    def flush_table():
        if table_lines:
            parts.extend(table_to_sentences(parse_markdown_table('\n'.join(table_lines))))
            table_lines.clear()

    for raw_line in markdown.split('\n'):
        line = raw_line.strip()
        if line.startswith('|'):
            table_lines.append(line)
            continue
        flush_table()
        plain = strip_inline_markdown(line)
        if plain:
            parts.append(plain)
    flush_table()

    return '\n'.join(parts)


if __name__ == '__main__':
    sample = """| Day | Exercise | Sets | Reps | Rest |
| --- | --- | --- | --- | --- |
| Day 1 | [Squat](#) | 4 | 8 | 90s |
|  | [Lunge](#) | 3 | 12 | 60s |
| Day 2 | [Plank](#) | 1 | 60s | 30s |"""

    print("Testing parser:")
    table = parse_markdown_table(sample)
    print(f"  Headers: {table['headers']}")
    print(f"  Rows: {table['row_count']}")
    print(f"  Items: {extract_items(sample)}")
    print(to_speech_text(sample))
