"""Text-to-speech providers."""

from __future__ import annotations

import re
from typing import Iterable, Protocol

import httpx

from config import Config


class ProviderError(Exception):
    """The speech provider could not produce audio."""


class SpeechProvider(Protocol):
    async def synthesize(self, text: str) -> bytes:
        ...


def apply_emphasis(text: str, emphasis: Iterable[str]) -> str:
    """Wrap each emphasized phrase in commas so the voice pauses around it."""
    for phrase in emphasis:
        if not phrase:
            continue
        pattern = re.compile(rf"\b{re.escape(phrase)}\b", re.I)
        text = pattern.sub(lambda match: f", {match.group(0)},", text)
    return text


class ElevenLabsProvider:
    """ElevenLabs text-to-speech over its REST API."""

    BASE_URL = "https://api.elevenlabs.io/v1/text-to-speech"

    VOICE_SETTINGS = {
        "stability": 0.5,
        "similarity_boost": 0.75,
        "style": 0.4,
        "use_speaker_boost": True,
    }

    def __init__(
        self,
        api_key: str,
        voice_id: str | None = None,
        model_id: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key
        self.voice_id = voice_id or Config.ELEVEN_LABS_VOICE_ID
        self.model_id = model_id or Config.ELEVEN_LABS_MODEL_ID
        self.timeout = timeout or Config.TTS_TIMEOUT_SECONDS

    async def synthesize(self, text: str) -> bytes:
        payload = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": self.VOICE_SETTINGS,
        }
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.api_key,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.BASE_URL}/{self.voice_id}",
                    headers=headers,
                    json=payload,
                )
        except httpx.HTTPError as exc:
            raise ProviderError(f"ElevenLabs request failed: {exc}") from exc

        if response.status_code != 200:
            raise ProviderError(
                f"ElevenLabs API error: {response.status_code} - {response.text[:200]}"
            )
        if not response.content:
            raise ProviderError("ElevenLabs returned empty audio")
        return response.content


class NullSpeechProvider:
    """Used when no API key is configured. Every call fails."""

    async def synthesize(self, text: str) -> bytes:
        raise ProviderError("ELEVEN_LABS_KEY not configured")


def get_speech_provider() -> SpeechProvider:
    if Config.speech_configured():
        return ElevenLabsProvider(Config.ELEVEN_LABS_KEY)
    return NullSpeechProvider()
