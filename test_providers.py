import base64
import json
from types import SimpleNamespace

import httpx
import pytest
import requests
from anthropic import APIConnectionError

from plan_normalizer import PlanMode
from providers import (
    PLAN_TOOL_NAME,
    AnthropicPlanProvider,
    Base64Image,
    BinaryImage,
    ElevenLabsSpeechProvider,
    ImagenImageProvider,
    ProviderError,
    resolve_image_response,
)


class FakeMessages:
    def __init__(self, content=None, error=None):
        self.content = content or []
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return SimpleNamespace(content=self.content)


class FakeResponse:
    def __init__(self, status=200, content=b"", headers=None, payload=None, chunks=None):
        self.status_code = status
        self.content = content
        self.headers = headers or {}
        self.payload = payload
        self.chunks = chunks or []

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON")
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_content(self, chunk_size=1):
        return iter(self.chunks)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response


def _plan_provider(messages):
    return AnthropicPlanProvider(api_key="test", model="claude-test", client=SimpleNamespace(messages=messages))


class TestAnthropicPlanProvider:
    def test_strict_mode_forces_tool_and_returns_json(self):
        plan = {"workout_plan_markdown": "W", "diet_plan_markdown": "D", "ai_tips": "T"}
        messages = FakeMessages(content=[SimpleNamespace(type="tool_use", input=plan)])
        raw = _plan_provider(messages).generate("prompt", PlanMode.STRICT_SCHEMA)

        assert json.loads(raw) == plan
        assert messages.kwargs['tool_choice'] == {'type': 'tool', 'name': PLAN_TOOL_NAME}
        assert messages.kwargs['model'] == "claude-test"

    def test_text_modes_return_first_text_block(self):
        messages = FakeMessages(content=[SimpleNamespace(type="text", text='Sure! {"a": 1}')])
        raw = _plan_provider(messages).generate("prompt", PlanMode.BEST_EFFORT_JSON)

        assert raw == 'Sure! {"a": 1}'
        assert 'tools' not in messages.kwargs

    def test_empty_response_is_a_provider_error(self):
        messages = FakeMessages(content=[SimpleNamespace(type="text", text="  ")])

        with pytest.raises(ProviderError):
            _plan_provider(messages).generate("prompt", PlanMode.TABULAR_TEXT)

    def test_api_errors_are_wrapped(self):
        error = APIConnectionError(request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))
        messages = FakeMessages(error=error)

        with pytest.raises(ProviderError) as exc:
            _plan_provider(messages).generate("prompt", PlanMode.STRICT_SCHEMA)
        assert exc.value.provider == "anthropic"

    def test_missing_key_fails_on_use(self):
        provider = AnthropicPlanProvider(api_key=None, model="claude-test")

        with pytest.raises(ProviderError):
            provider.generate("prompt", PlanMode.STRICT_SCHEMA)


class TestImageResponses:
    def test_imagen_predictions(self):
        response = FakeResponse(
            headers={'Content-Type': 'application/json; charset=UTF-8'},
            payload={"predictions": [{"bytesBase64Encoded": "aGVsbG8=", "mimeType": "image/png"}]},
        )
        image = resolve_image_response(response)

        assert image == Base64Image(data="aGVsbG8=", mime_type="image/png")
        assert image.to_data_uri() == "data:image/png;base64,aGVsbG8="

    def test_binary_body(self):
        response = FakeResponse(headers={'Content-Type': 'image/jpeg'}, content=b"hello")
        image = resolve_image_response(response)

        assert isinstance(image, BinaryImage)
        assert image.to_data_uri() == "data:image/jpeg;base64," + base64.b64encode(b"hello").decode()

    @pytest.mark.parametrize("payload", [
        {}, {"predictions": []}, {"predictions": [{}]}, {"predictions": {"a": 1}}, {"predictions": "abc"}, [1], None,
    ])
    def test_no_image(self, payload):
        response = FakeResponse(headers={'Content-Type': 'application/json'}, payload=payload)

        with pytest.raises(ProviderError):
            resolve_image_response(response)

    def test_provider_posts_prompt(self):
        session = FakeSession(FakeResponse(
            headers={'Content-Type': 'application/json'},
            payload={"predictions": [{"bytesBase64Encoded": "abc"}]},
        ))
        provider = ImagenImageProvider(api_key="key", model="imagen-test", session=session)
        image = provider.generate("a squat")

        assert image.to_data_uri() == "data:image/jpeg;base64,abc"
        url, kwargs = session.calls[0]
        assert "imagen-test:predict" in url
        assert kwargs['json']['instances'] == [{"prompt": "a squat"}]
        assert kwargs['headers'] == {'x-goog-api-key': "key"}

    def test_http_error(self):
        session = FakeSession(FakeResponse(status=429))
        provider = ImagenImageProvider(api_key="key", model="imagen-test", session=session)

        with pytest.raises(ProviderError):
            provider.generate("a squat")

    def test_missing_key(self):
        provider = ImagenImageProvider(api_key=None, model="imagen-test", session=FakeSession())

        with pytest.raises(ProviderError):
            provider.generate("a squat")


class TestElevenLabsSpeechProvider:
    def test_buffers_whole_stream(self):
        session = FakeSession(FakeResponse(chunks=[b"ID3", b"", b"abc", b"def"]))
        provider = ElevenLabsSpeechProvider(api_key="key", voice_id="voice", model_id="model", session=session)

        assert provider.synthesize("Day 1: Squat.") == b"ID3abcdef"
        url, kwargs = session.calls[0]
        assert url.endswith("/text-to-speech/voice")
        assert kwargs['stream'] is True
        assert kwargs['json'] == {'text': "Day 1: Squat.", 'model_id': "model"}

    def test_empty_stream(self):
        session = FakeSession(FakeResponse(chunks=[]))
        provider = ElevenLabsSpeechProvider(api_key="key", voice_id="voice", model_id="model", session=session)

        with pytest.raises(ProviderError):
            provider.synthesize("hi")

    def test_network_error(self):
        session = FakeSession(error=requests.ConnectionError("down"))
        provider = ElevenLabsSpeechProvider(api_key="key", voice_id="voice", model_id="model", session=session)

        with pytest.raises(ProviderError):
            provider.synthesize("hi")
