"""
Speech cache - one synthesized mp3 per question node.

Audio is keyed by node id and lives at ``<cache_dir>/<node_id>.mp3``.
Synthesis is single-flight per node: concurrent callers for the same node
await one provider call. Speech is an enhancement, so every provider
failure degrades to "no audio" instead of failing the turn.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import math
import os
import re
import tempfile
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable

from pydantic import BaseModel

from config import Config
from orchestrator.exceptions import ProviderDegraded
from services.speech_service import ProviderError, SpeechProvider, apply_emphasis

if TYPE_CHECKING:
    from nodes.graph import QuestionGraph

logger = logging.getLogger(__name__)

_SAFE_NODE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class SpeechCacheEntry(BaseModel):
    node_id: str
    path: str
    size_bytes: int
    content_hash: str | None = None  # sha256 of audio synthesized by this process


def format_bytes(size: int) -> str:
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    return f"{round(size / 1024 ** i, 2):g} {units[i]}"


class SpeechCache:
    def __init__(
        self,
        provider: SpeechProvider,
        cache_dir: str | None = None,
        timeout_seconds: float | None = None,
        prewarm_delay_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.provider = provider
        self.cache_dir = cache_dir or Config.get_audio_dir()
        os.makedirs(self.cache_dir, exist_ok=True)
        self.timeout_seconds = (
            Config.TTS_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        self.prewarm_delay_seconds = (
            Config.PREWARM_DELAY_SECONDS if prewarm_delay_seconds is None else prewarm_delay_seconds
        )
        self._sleep = sleep
        self._entries: dict[str, SpeechCacheEntry] = {}
        self._inflight: dict[str, asyncio.Task] = {}
        self._lock = asyncio.Lock()
        self._load_existing()

    def _load_existing(self) -> None:
        for filename in sorted(os.listdir(self.cache_dir)):
            if not filename.endswith(".mp3"):
                continue
            node_id = filename[: -len(".mp3")]
            path = os.path.join(self.cache_dir, filename)
            self._entries[node_id] = SpeechCacheEntry(
                node_id=node_id,
                path=path,
                size_bytes=os.path.getsize(path),
            )
        if self._entries:
            logger.info("Loaded %d cached audio files from %s", len(self._entries), self.cache_dir)

    def audio_path(self, node_id: str) -> str | None:
        """Path where a node's audio lives, or None for ids that cannot be file names."""
        if not _SAFE_NODE_ID.match(node_id or ""):
            return None
        return os.path.join(self.cache_dir, f"{node_id}.mp3")

    def lookup(self, node_id: str) -> SpeechCacheEntry | None:
        entry = self._entries.get(node_id)
        if entry is not None and not os.path.exists(entry.path):
            # Removed from disk behind our back
            self._entries.pop(node_id, None)
            return None
        return entry

    async def ensure(
        self, node_id: str, text: str, emphasis: Iterable[str] = ()
    ) -> SpeechCacheEntry | None:
        """
        Return cached audio for ``node_id``, synthesizing it on first use.

        Returns None when the node id is unusable or the provider is
        degraded; the failure is logged and never raised.
        """
        entry = self.lookup(node_id)
        if entry is not None:
            return entry
        if self.audio_path(node_id) is None:
            logger.warning("Refusing to cache audio for unsafe node id %r", node_id)
            return None

        async with self._lock:
            entry = self.lookup(node_id)
            if entry is not None:
                return entry
            task = self._inflight.get(node_id)
            if task is None:
                task = asyncio.create_task(self._synthesize(node_id, text, tuple(emphasis)))
                self._inflight[node_id] = task
                task.add_done_callback(lambda done: self._finished(node_id, done))

        try:
            return await asyncio.shield(task)
        except ProviderDegraded as exc:
            logger.warning("Speech unavailable for %s: %s", node_id, exc.message)
            return None

    def _finished(self, node_id: str, task: asyncio.Task) -> None:
        self._inflight.pop(node_id, None)
        if not task.cancelled():
            # Mark the outcome retrieved even if every waiter was cancelled
            task.exception()

    async def _synthesize(self, node_id: str, text: str, emphasis: tuple[str, ...]) -> SpeechCacheEntry:
        spoken = apply_emphasis(text, emphasis)
        logger.info("Synthesizing audio for %s", node_id)
        try:
            audio = await asyncio.wait_for(
                self.provider.synthesize(spoken), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            raise ProviderDegraded(
                f"synthesis timed out after {self.timeout_seconds}s"
            ) from exc
        except ProviderError as exc:
            raise ProviderDegraded(str(exc)) from exc

        path = self.audio_path(node_id)
        try:
            await asyncio.to_thread(self._write_atomic, path, audio)
        except OSError as exc:
            raise ProviderDegraded(f"could not write audio: {exc}") from exc
        entry = SpeechCacheEntry(
            node_id=node_id,
            path=path,
            size_bytes=len(audio),
            content_hash=hashlib.sha256(audio).hexdigest(),
        )
        self._entries[node_id] = entry
        return entry

    def _write_atomic(self, path: str, audio: bytes) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(audio)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def stats(self) -> dict:
        files = sorted(f for f in os.listdir(self.cache_dir) if f.endswith(".mp3"))
        total_size = sum(os.path.getsize(os.path.join(self.cache_dir, f)) for f in files)
        return {
            "totalFiles": len(files),
            "totalSize": format_bytes(total_size),
            "files": files,
        }

    async def prewarm(self, graph: QuestionGraph) -> dict:
        """
        Synthesize audio for every speech-enabled node that is not cached.

        Sleeps ``prewarm_delay_seconds`` after each provider call to stay
        under the provider's rate limit.
        """
        generated, skipped, failed = [], [], []
        for node in graph.nodes():
            if not node.speech_enabled or self.lookup(node.id) is not None:
                skipped.append(node.id)
                continue
            entry = await self.ensure(node.id, node.spoken_text, node.speech.emphasis)
            if entry is None:
                failed.append(node.id)
            else:
                generated.append(node.id)
            await self._sleep(self.prewarm_delay_seconds)

        logger.info(
            "Audio prewarm finished: %d generated, %d skipped, %d failed",
            len(generated),
            len(skipped),
            len(failed),
        )
        return {"generated": generated, "skipped": skipped, "failed": failed}
