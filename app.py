#!/usr/bin/env python3
"""
AI Fitness Planner
Collects a fitness profile, asks Claude for a 7-day workout and diet plan,
and illustrates / reads out plan items on demand
"""

from typing import Any, Dict, Optional

from flask import Flask, Response, current_app, jsonify, render_template, request

import config
from evals import collect_issues, run_evals
from logger import logger
from plan_normalizer import normalize, parse_mode
from plan_parser import extract_items, to_speech_text
from prompts import ProfileError, UserProfile, build_image_prompt, build_plan_prompt, profile_summary
from providers import (
    AnthropicPlanProvider,
    ElevenLabsSpeechProvider,
    ImagenImageProvider,
    ProviderError,
)

PLAN_SECTIONS = {
    'workout': 'workout_plan_markdown',
    'diet': 'diet_plan_markdown',
    'tips': 'ai_tips',
}


def create_app(config_overrides: Optional[Dict[str, Any]] = None,
               plan_provider=None, image_provider=None, speech_provider=None) -> Flask:
    """
    Application factory

    Providers not passed in are built from configuration. Building them
    doesn't touch the network; missing API keys only fail the request
    that needs them.
    """
    app = Flask(__name__)
    app.config.update(config.as_dict())
    if config_overrides:
        app.config.update(config_overrides)

    # Fail fast on a bad PLAN_MODE instead of on the first request
    app.config['PLAN_MODE'] = parse_mode(app.config['PLAN_MODE'])

    timeout = app.config['REQUEST_TIMEOUT']
    app.extensions['plan_provider'] = plan_provider or AnthropicPlanProvider(
        api_key=app.config['ANTHROPIC_API_KEY'],
        model=app.config['PLAN_MODEL'],
        max_tokens=app.config['PLAN_MAX_TOKENS'],
    )
    app.extensions['image_provider'] = image_provider or ImagenImageProvider(
        api_key=app.config['GEMINI_API_KEY'],
        model=app.config['IMAGE_MODEL'],
        timeout=timeout,
    )
    app.extensions['speech_provider'] = speech_provider or ElevenLabsSpeechProvider(
        api_key=app.config['ELEVENLABS_API_KEY'],
        voice_id=app.config['ELEVENLABS_VOICE_ID'],
        model_id=app.config['SPEECH_MODEL'],
        timeout=timeout,
    )

    register_routes(app)
    return app


def register_routes(app: Flask):

    @app.route('/')
    def index():
        """Main app interface"""
        return render_template('index.html')

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok', 'plan_mode': current_app.config['PLAN_MODE'].value})

    @app.route('/api/generate-plan', methods=['POST'])
    def generate_plan():
        """Generate and normalize a 7-day workout and diet plan"""
        data = request.get_json(silent=True)

        try:
            profile = UserProfile.from_request(data)
        except ProfileError as e:
            return jsonify({'success': False, 'error': str(e), 'fields': e.fields}), 400

        mode = current_app.config['PLAN_MODE']
        prompt = build_plan_prompt(profile, mode)

        try:
            raw_text = current_app.extensions['plan_provider'].generate(prompt, mode)
        except ProviderError as e:
            logger.error(f"Plan generation failed: {e}")
            return jsonify({'success': False, 'error': 'Failed to generate plan.'}), 500

        result = normalize(raw_text, mode)
        if not result.ok:
            error = result.error
            logger.warning(
                f"Plan response rejected ({error.kind.value}, mode={mode.value}, "
                f"fields={list(error.fields)}): {error.snippet!r}"
            )
            return jsonify({
                'success': False,
                'error': 'AI model returned an unusable plan.',
                **error.to_dict()
            }), 502

        plan = result.plan
        logger.info(f"Plan generated (mode={mode.value}, profile={profile_summary(profile)})")

        response = {
            'success': True,
            'plan': plan.to_dict(),
            'items': {
                'workout': extract_items(plan.workout_plan_markdown),
                'food': extract_items(plan.diet_plan_markdown)
            }
        }

        # Evals are optional diagnostics, they never block the plan
        if current_app.config['RUN_EVALS']:
            eval_results = run_evals(plan)
            issues = collect_issues(eval_results)
            if issues:
                logger.warning(f"Plan evals flagged {len(issues)} issue(s): {issues[:5]}")
            response['evals'] = {
                'overall_score': eval_results['overall_score'],
                'passed': eval_results['overall_passed'],
                'issues': issues
            }

        return jsonify(response)

    @app.route('/api/generate-image', methods=['POST'])
    def generate_image():
        """Illustrate one exercise or meal"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'success': False, 'error': 'Expected a JSON object'}), 400

        item = data.get('item')
        item_type = data.get('type')

        if not isinstance(item, str) or not item.strip():
            return jsonify({'success': False, 'error': 'Item required'}), 400

        try:
            prompt = build_image_prompt(item, item_type)
        except ValueError:
            return jsonify({'success': False, 'error': 'Invalid type provided.'}), 400

        try:
            image = current_app.extensions['image_provider'].generate(prompt)
        except ProviderError as e:
            logger.error(f"Image generation failed for {item_type} {item!r}: {e}")
            return jsonify({'success': False, 'error': 'Failed to generate image.'}), 500

        return jsonify({'success': True, 'imageUrl': image.to_data_uri()})

    @app.route('/api/read-plan', methods=['POST'])
    def read_plan():
        """Read a plan section aloud; returns the complete MP3"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'success': False, 'error': 'Expected a JSON object'}), 400

        text = data.get('text')

        # Either raw text or a section name plus the plan it belongs to
        section = data.get('section')
        if not text and isinstance(section, str) and section in PLAN_SECTIONS and isinstance(data.get('plan'), dict):
            text = data['plan'].get(PLAN_SECTIONS[section])

        if not isinstance(text, str) or not text.strip():
            return jsonify({'success': False, 'error': 'No text provided'}), 400

        speech_text = to_speech_text(text)[:current_app.config['SPEECH_MAX_CHARS']]
        if not speech_text.strip():
            return jsonify({'success': False, 'error': 'No text provided'}), 400

        try:
            audio = current_app.extensions['speech_provider'].synthesize(speech_text)
        except ProviderError as e:
            logger.error(f"TTS failed: {e}")
            return jsonify({'success': False, 'error': 'Failed to generate audio'}), 500

        return Response(audio, headers={
            'Content-Type': 'audio/mpeg',
            'Content-Disposition': 'inline; filename="speech.mp3"'
        })


if __name__ == '__main__':
    app = create_app()
    print("\n" + "="*50)
    print("AI Fitness Planner")
    print("="*50)
    print(f"Plan mode: {app.config['PLAN_MODE'].value}")
    print(f"Plan model: {app.config['PLAN_MODEL']}")
    print("="*50 + "\n")
    print(f"Starting server on http://localhost:{app.config['PORT']}")
    print("Press Ctrl+C to stop\n")
    app.run(debug=True, host='0.0.0.0', port=app.config['PORT'])
