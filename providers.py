"""
Outbound AI providers: plan text (Anthropic), images (Imagen REST) and
speech (ElevenLabs REST)

Each provider is constructed explicitly and handed to create_app, so the
app can be tested with fakes and nothing talks to the network at import.
"""

import base64
import json
from dataclasses import dataclass
from typing import Optional, Union

import requests
from anthropic import Anthropic, APIError

from plan_normalizer import PlanMode
from prompts import PLAN_SCHEMA

PLAN_TOOL_NAME = 'submit_plan'
IMAGEN_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:predict"
ELEVENLABS_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"


class ProviderError(Exception):
    """Upstream call failed (network, quota, empty or unusable response)"""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


@dataclass(frozen=True)
class Base64Image:
    data: str
    mime_type: str = 'image/jpeg'

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass(frozen=True)
class BinaryImage:
    content: bytes
    mime_type: str = 'image/jpeg'

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.content).decode('ascii')
        return f"data:{self.mime_type};base64,{encoded}"


ImagePayload = Union[Base64Image, BinaryImage]


class AnthropicPlanProvider:
    """Generates the raw plan text with Claude"""

    name = 'anthropic'

    def __init__(self, api_key: Optional[str], model: str, max_tokens: int = 4096, client=None):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise ProviderError(self.name, "ANTHROPIC_API_KEY is not set")
            self._client = Anthropic(api_key=self.api_key)
        return self._client

    def generate(self, prompt: str, mode: PlanMode) -> str:
        """
        Return the model's raw response text for the given mode

        In strict schema mode the model is forced to call the plan tool, so
        the tool input is already an object matching PLAN_SCHEMA; it is
        serialized back to JSON text for the normalizer.
        """
        kwargs = {
            'model': self.model,
            'max_tokens': self.max_tokens,
            'messages': [{"role": "user", "content": prompt}],
        }
        if mode == PlanMode.STRICT_SCHEMA:
            kwargs['tools'] = [{
                'name': PLAN_TOOL_NAME,
                'description': "Submit the generated 7-day workout plan, diet plan and tips.",
                'input_schema': PLAN_SCHEMA,
            }]
            kwargs['tool_choice'] = {'type': 'tool', 'name': PLAN_TOOL_NAME}

        try:
            message = self.client.messages.create(**kwargs)
        except APIError as e:
            raise ProviderError(self.name, str(e)) from e

        for block in message.content or []:
            block_type = getattr(block, 'type', None)
            if mode == PlanMode.STRICT_SCHEMA and block_type == 'tool_use':
                return json.dumps(block.input)
            if mode != PlanMode.STRICT_SCHEMA and block_type == 'text' and block.text.strip():
                return block.text

        raise ProviderError(self.name, "model returned empty content")


def resolve_image_response(response) -> ImagePayload:
    """
    Map an image endpoint response onto one ImagePayload variant

    Raw image bodies become BinaryImage; JSON bodies are read as Imagen
    predictions (bytesBase64Encoded + mimeType) and become Base64Image.
    """
    content_type = response.headers.get('Content-Type', '').split(';')[0].strip().lower()
    if content_type.startswith('image/'):
        if not response.content:
            raise ProviderError('imagen', "empty image body")
        return BinaryImage(content=response.content, mime_type=content_type)

    try:
        data = response.json()
    except ValueError as e:
        raise ProviderError('imagen', "response was not JSON") from e

    predictions = data.get('predictions') if isinstance(data, dict) else None
    if not isinstance(predictions, list) or not predictions or not isinstance(predictions[0], dict):
        raise ProviderError('imagen', "no images were generated")

    first = predictions[0]
    encoded = first.get('bytesBase64Encoded')
    if not encoded:
        raise ProviderError('imagen', "no images were generated")
    return Base64Image(data=encoded, mime_type=first.get('mimeType') or 'image/jpeg')


class ImagenImageProvider:
    """Generates one square image per prompt through the Imagen predict endpoint"""

    name = 'imagen'

    def __init__(self, api_key: Optional[str], model: str, timeout: float = 60, session=None):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()

    def generate(self, prompt: str) -> ImagePayload:
        if not self.api_key:
            raise ProviderError(self.name, "GEMINI_API_KEY is not set")

        payload = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": 1,
                "aspectRatio": "1:1",
                "outputOptions": {"mimeType": "image/jpeg"}
            }
        }
        try:
            response = self.session.post(
                IMAGEN_URL.format(model=self.model),
                headers={'x-goog-api-key': self.api_key},
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise ProviderError(self.name, str(e)) from e

        return resolve_image_response(response)


class ElevenLabsSpeechProvider:
    """Text-to-speech; returns the whole MPEG stream as bytes"""

    name = 'elevenlabs'

    def __init__(self, api_key: Optional[str], voice_id: str, model_id: str,
                 timeout: float = 60, session=None):
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.timeout = timeout
        self.session = session or requests.Session()

    def synthesize(self, text: str) -> bytes:
        if not self.api_key:
            raise ProviderError(self.name, "ELEVENLABS_API_KEY is not set")

        chunks = []
        try:
            with self.session.post(
                ELEVENLABS_URL.format(voice_id=self.voice_id),
                headers={'xi-api-key': self.api_key, 'Accept': 'audio/mpeg'},
                json={'text': text, 'model_id': self.model_id},
                stream=True,
                timeout=self.timeout,
            ) as response:
                response.raise_for_status()
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        chunks.append(chunk)
        except requests.RequestException as e:
            raise ProviderError(self.name, str(e)) from e

        audio = b''.join(chunks)
        if not audio:
            raise ProviderError(self.name, "empty audio stream")
        return audio
