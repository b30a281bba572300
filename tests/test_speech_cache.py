import asyncio
import gc
import os
import tempfile
import unittest

from nodes.question_tree import build_question_graph
from services.speech_cache import SpeechCache, format_bytes
from services.speech_service import NullSpeechProvider, ProviderError, apply_emphasis


class RecordingProvider:
    def __init__(self, audio: bytes = b"ID3-fake-mp3", delay: float = 0.0):
        self.audio = audio
        self.delay = delay
        self.texts: list[str] = []

    async def synthesize(self, text: str) -> bytes:
        self.texts.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.audio


class FailingProvider:
    def __init__(self):
        self.calls = 0

    async def synthesize(self, text: str) -> bytes:
        self.calls += 1
        raise ProviderError("quota exceeded")


class SlowFailingProvider:
    def __init__(self, delay: float):
        self.delay = delay

    async def synthesize(self, text: str) -> bytes:
        await asyncio.sleep(self.delay)
        raise ProviderError("upstream 500")


class SpeechCacheTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.cache_dir = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def _cache(self, provider, **kwargs) -> SpeechCache:
        kwargs.setdefault("timeout_seconds", 5)
        kwargs.setdefault("prewarm_delay_seconds", 0)
        return SpeechCache(provider, cache_dir=self.cache_dir, **kwargs)


class TestEnsure(SpeechCacheTestCase):
    async def test_synthesizes_once_and_caches(self):
        provider = RecordingProvider()
        cache = self._cache(provider)

        entry = await cache.ensure("start", "What brings you here?")
        self.assertEqual(entry.size_bytes, len(provider.audio))
        self.assertIsNotNone(entry.content_hash)
        self.assertTrue(os.path.exists(entry.path))

        again = await cache.ensure("start", "What brings you here?")
        self.assertEqual(again, entry)
        self.assertEqual(len(provider.texts), 1)
        self.assertEqual(cache.lookup("start"), entry)

    async def test_single_flight(self):
        provider = RecordingProvider(delay=0.05)
        cache = self._cache(provider)

        entries = await asyncio.gather(*[cache.ensure("start", "hello") for _ in range(5)])

        self.assertEqual(len(provider.texts), 1)
        self.assertTrue(all(entry == entries[0] for entry in entries))

    async def test_provider_error_degrades(self):
        provider = FailingProvider()
        cache = self._cache(provider)

        with self.assertLogs("services.speech_cache", level="WARNING"):
            self.assertIsNone(await cache.ensure("start", "hello"))
        self.assertEqual(os.listdir(self.cache_dir), [])

        # Failures are not cached; the next call retries
        with self.assertLogs("services.speech_cache", level="WARNING"):
            await cache.ensure("start", "hello")
        self.assertEqual(provider.calls, 2)

    async def test_failure_after_callers_cancel_is_collected(self):
        reported = []
        asyncio.get_running_loop().set_exception_handler(lambda loop, context: reported.append(context))
        cache = self._cache(SlowFailingProvider(delay=0.05))

        caller = asyncio.create_task(cache.ensure("start", "hello"))
        await asyncio.sleep(0.01)
        caller.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await caller
        await asyncio.sleep(0.1)
        gc.collect()

        self.assertEqual(cache._inflight, {})
        self.assertEqual(reported, [])

    async def test_timeout_degrades(self):
        cache = self._cache(RecordingProvider(delay=1.0), timeout_seconds=0.01)
        with self.assertLogs("services.speech_cache", level="WARNING"):
            self.assertIsNone(await cache.ensure("start", "hello"))

    async def test_null_provider(self):
        cache = self._cache(NullSpeechProvider())
        with self.assertLogs("services.speech_cache", level="WARNING"):
            self.assertIsNone(await cache.ensure("start", "hello"))

    async def test_emphasis_is_spoken_with_pauses(self):
        provider = RecordingProvider()
        cache = self._cache(provider)
        await cache.ensure("credit_conversation", "Be honest with us", ("honest",))
        self.assertEqual(provider.texts, ["Be , honest, with us"])

    async def test_unsafe_node_id(self):
        provider = RecordingProvider()
        cache = self._cache(provider)
        self.assertIsNone(cache.audio_path("../etc/passwd"))
        with self.assertLogs("services.speech_cache", level="WARNING"):
            self.assertIsNone(await cache.ensure("../etc/passwd", "hello"))
        self.assertEqual(provider.texts, [])


class TestCacheDirectory(SpeechCacheTestCase):
    async def test_loads_existing_files(self):
        with open(os.path.join(self.cache_dir, "start.mp3"), "wb") as handle:
            handle.write(b"x" * 2048)
        with open(os.path.join(self.cache_dir, "notes.txt"), "w") as handle:
            handle.write("ignored")

        cache = self._cache(RecordingProvider())
        entry = cache.lookup("start")
        self.assertEqual(entry.size_bytes, 2048)
        self.assertIsNone(entry.content_hash)
        self.assertEqual(cache.stats(), {"totalFiles": 1, "totalSize": "2 KB", "files": ["start.mp3"]})

    async def test_lookup_forgets_deleted_files(self):
        cache = self._cache(RecordingProvider())
        entry = await cache.ensure("start", "hello")
        os.remove(entry.path)
        self.assertIsNone(cache.lookup("start"))

    def test_format_bytes(self):
        self.assertEqual(format_bytes(0), "0 Bytes")
        self.assertEqual(format_bytes(512), "512 Bytes")
        self.assertEqual(format_bytes(1536), "1.5 KB")
        self.assertEqual(format_bytes(3 * 1024 * 1024), "3 MB")


class TestPrewarm(SpeechCacheTestCase):
    async def test_skips_cached_and_paces_remote_calls(self):
        with open(os.path.join(self.cache_dir, "start.mp3"), "wb") as handle:
            handle.write(b"cached")

        sleeps: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)

        provider = RecordingProvider()
        cache = self._cache(provider, prewarm_delay_seconds=6, sleep=fake_sleep)
        graph = build_question_graph(12)

        result = await cache.prewarm(graph)

        self.assertIn("start", result["skipped"])
        self.assertEqual(len(result["generated"]), len(graph) - 1)
        self.assertEqual(result["failed"], [])
        self.assertEqual(sleeps, [6] * len(result["generated"]))
        self.assertEqual(cache.stats()["totalFiles"], len(graph))

        # Second pass has nothing left to do
        sleeps.clear()
        again = await cache.prewarm(graph)
        self.assertEqual(again["generated"], [])
        self.assertEqual(sleeps, [])

    async def test_write_failures_do_not_abort(self):
        cache = self._cache(RecordingProvider())

        def disk_full(path, audio):
            raise OSError(28, "No space left on device")

        cache._write_atomic = disk_full
        graph = build_question_graph(12)

        with self.assertLogs("services.speech_cache", level="WARNING"):
            result = await cache.prewarm(graph)

        self.assertEqual(result["generated"], [])
        self.assertEqual(len(result["failed"]) + len(result["skipped"]), len(graph))
        self.assertIn("start", result["failed"])
        self.assertEqual(cache.stats()["totalFiles"], 0)


class TestEmphasis(unittest.TestCase):
    def test_case_insensitive_word_boundaries(self):
        self.assertEqual(
            apply_emphasis("What's this car's mission in your life?", ["Mission"]),
            "What's this car's , mission, in your life?",
        )
        self.assertEqual(apply_emphasis("commuter", ["commute"]), "commuter")


if __name__ == "__main__":
    unittest.main()
