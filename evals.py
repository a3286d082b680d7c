#!/usr/bin/env python3
"""
Evals for Generated Plans
Lightweight checks that the plan tables are well-formed markdown and that
exercise/meal cells are clickable links
"""

from typing import Dict, List, Any

from plan_normalizer import Plan
from plan_parser import parse_markdown_table, parse_link

WORKOUT_COLUMNS = ['Day', 'Exercise', 'Sets', 'Reps', 'Rest']
DIET_COLUMNS = ['Day', 'Meal', 'Time', 'Portion/Notes']


def eval_table_structure(markdown: str, expected_columns: List[str]) -> Dict[str, Any]:
    """
    Evaluate if a plan table is a well-formed markdown table:
    - Has a header row
    - Has the "| --- |" alignment row right after it
    - Every data row has as many cells as the header
    - Header width matches the expected schema
    """
    results = {
        'passed': True,
        'issues': [],
        'score': 0,
        'max_score': 4,
        'row_count': 0
    }

    table = parse_markdown_table(markdown)
    headers = table['headers']
    results['row_count'] = table['row_count']

    # Check 1: header
    if headers:
        results['score'] += 1
    else:
        results['issues'].append("No markdown table found")
        results['passed'] = False
        results['score_pct'] = 0
        return results

    # Check 2: alignment row
    if table['has_alignment']:
        results['score'] += 1
    else:
        results['issues'].append("Missing alignment row under the header")
        results['passed'] = False

    # Check 3: consistent row width
    ragged = [i + 1 for i, row in enumerate(table['rows']) if len(row) != len(headers)]
    if table['rows'] and not ragged:
        results['score'] += 1
    elif not table['rows']:
        results['issues'].append("Table has no data rows")
        results['passed'] = False
    else:
        results['issues'].append(
            f"Rows {', '.join(str(r) for r in ragged[:5])} don't have {len(headers)} cells"
        )
        results['passed'] = False

    # Check 4: schema width (names may be phrased differently, so only count)
    if len(headers) == len(expected_columns):
        results['score'] += 1
    else:
        results['issues'].append(
            f"Table has {len(headers)} columns (expected {len(expected_columns)}: {', '.join(expected_columns)})"
        )
        results['passed'] = False

    results['score_pct'] = (results['score'] / results['max_score']) * 100
    return results


def eval_item_links(markdown: str, item_column: int = 1) -> Dict[str, Any]:
    """
    Evaluate if item cells (exercise or meal names) are markdown links

    Plain-text items can't be clicked for an image. This only reports the
    problem, it never rewrites the table.
    """
    results = {
        'passed': True,
        'issues': [],
        'linked': 0,
        'total': 0,
        'score_pct': 100.0
    }

    table = parse_markdown_table(markdown)
    plain_items = []
    for row in table['rows']:
        if len(row) <= item_column or not row[item_column]:
            continue
        results['total'] += 1
        link = parse_link(row[item_column])
        if link and link['target'] == '#':
            results['linked'] += 1
        elif link:
            results['issues'].append(f"\"{link['text']}\" links to {link['target']!r} instead of '#'")
            results['linked'] += 1
        else:
            plain_items.append(row[item_column])

    if plain_items:
        results['passed'] = False
        preview = ', '.join(plain_items[:3])
        results['issues'].append(f"{len(plain_items)} item(s) are not links: {preview}")

    if results['total']:
        results['score_pct'] = (results['linked'] / results['total']) * 100
    else:
        results['passed'] = False
        results['score_pct'] = 0
        results['issues'].append("No item cells found")

    return results


def eval_plan(plan: Plan) -> Dict[str, Any]:
    """
    Comprehensive evaluation of a normalized plan
    Combines all eval functions
    """
    results = {
        'workout_structure': eval_table_structure(plan.workout_plan_markdown, WORKOUT_COLUMNS),
        'workout_links': eval_item_links(plan.workout_plan_markdown),
        'diet_structure': eval_table_structure(plan.diet_plan_markdown, DIET_COLUMNS),
        'diet_links': eval_item_links(plan.diet_plan_markdown),
        'has_tips': bool(plan.ai_tips),
        'overall_score': 0,
        'overall_passed': False
    }

    # Structure matters more than links: a broken table doesn't render at all
    structure_weight = 0.3
    links_weight = 0.2

    results['overall_score'] = (
        results['workout_structure']['score_pct'] * structure_weight +
        results['diet_structure']['score_pct'] * structure_weight +
        results['workout_links']['score_pct'] * links_weight +
        results['diet_links']['score_pct'] * links_weight
    )

    results['overall_passed'] = (
        results['workout_structure']['passed'] and
        results['diet_structure']['passed'] and
        results['overall_score'] >= 70
    )

    return results


def run_evals(plan: Plan) -> Dict[str, Any]:
    """
    Run all evals on a plan and return results
    """
    return eval_plan(plan)


def collect_issues(results: Dict[str, Any]) -> List[str]:
    """Flatten the issues of every check, prefixed with the check name"""
    issues = []
    for name in ('workout_structure', 'workout_links', 'diet_structure', 'diet_links'):
        for issue in results[name].get('issues', []):
            issues.append(f"{name}: {issue}")
    return issues


def print_eval_results(results: Dict[str, Any]):
    """
    Pretty print eval results
    """
    print("\n" + "="*50)
    print("EVAL RESULTS")
    print("="*50)

    for label, name in (("🏋️ Workout table", 'workout_structure'), ("🥗 Diet table", 'diet_structure')):
        check = results[name]
        print(f"\n{label}: {check['score']}/{check['max_score']} ({check['score_pct']:.0f}%), {check['row_count']} rows")
        for issue in check['issues']:
            print(f"   - {issue}")

    for label, name in (("🔗 Workout links", 'workout_links'), ("🔗 Diet links", 'diet_links')):
        check = results[name]
        print(f"\n{label}: {check['linked']}/{check['total']} ({check['score_pct']:.0f}%)")
        for issue in check['issues']:
            print(f"   - {issue}")

    print(f"\n💡 Tips: {'present' if results['has_tips'] else 'missing'}")

    print(f"\n🎯 Overall Score: {results['overall_score']:.1f}%")
    if results['overall_passed']:
        print("   ✅ PASSED")
    else:
        print("   ❌ FAILED")

    print("="*50 + "\n")


if __name__ == '__main__':
    # Example usage
    test_plan = Plan(
        workout_plan_markdown="""| Day | Exercise | Sets | Reps | Rest |
| --- | --- | --- | --- | --- |
| Day 1 | [Squat](#) | 4 | 8 | 90s |
|  | [Lunge](#) | 3 | 12 | 60s |""",
        diet_plan_markdown="""| Day | Meal | Time | Portion/Notes |
| --- | --- | --- | --- |
| Day 1 | [Oatmeal with Berries](#) | 8:00 AM | 1 bowl |
|  | Grilled Chicken | 1:00 PM | 150 g |""",
        ai_tips="Drink water."
    )

    results = run_evals(test_plan)
    print_eval_results(results)
