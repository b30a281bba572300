import os
import tempfile
import unittest
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from api.main import app
from api.sessions import GameRuntime, get_runtime
from memory.session_store import MemorySessionStore
from nodes.question_tree import build_question_graph
from orchestrator.exceptions import GraphConfigurationError
from services.speech_cache import SpeechCache
from services.speech_service import NullSpeechProvider


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        with open(os.path.join(self._tmp.name, "start.mp3"), "wb") as handle:
            handle.write(b"ID3-start")

        self.runtime = GameRuntime(
            graph=build_question_graph(12),
            store=MemorySessionStore(),
            speech_cache=SpeechCache(
                NullSpeechProvider(), cache_dir=self._tmp.name, prewarm_delay_seconds=0
            ),
        )
        app.dependency_overrides[get_runtime] = lambda: self.runtime
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self._tmp.cleanup()

    def _start(self, user_id="user-1", **extra):
        return self.client.post("/api/game/start", json={"userId": user_id, **extra})

    def _answer(self, question_id, answer, user_id="user-1"):
        return self.client.post(
            "/api/game/answer",
            json={"userId": user_id, "questionId": question_id, "answer": answer},
        )

    def _login(self, email="abhamisaqi@email.com", password="demo1234"):
        return self.client.post("/api/auth/login", json={"email": email, "password": password})


class TestGameRoutes(ApiTestCase):
    def test_start(self):
        response = self._start()
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["sessionId"], "user-1")
        self.assertFalse(body["complete"])
        self.assertEqual(body["progress"], {"current": 1, "total": 12})
        self.assertEqual(body["question"]["id"], "start")
        self.assertEqual(body["question"]["speech"], {"enabled": True, "audioRef": "/api/game/audio/start"})
        self.assertNotIn("loadingTransition", body)

    def test_start_without_user_id(self):
        body = self.client.post("/api/game/start", json={}).json()
        self.assertTrue(body["sessionId"])

    def test_answer_returns_next_question(self):
        self._start()
        body = self._answer("start", "I'm buying my first car").json()
        self.assertEqual(body["question"]["id"], "financial_comfort")
        self.assertEqual(body["progress"]["current"], 2)
        self.assertLessEqual(len(body["question"]["examples"]), 2)
        self.assertEqual(len(body["loadingTransition"]["messages"]), 3)
        self.assertEqual(body["loadingTransition"]["animation"], "orbit")
        # Not cached and the provider is unavailable
        self.assertNotIn("audioRef", body["question"]["speech"])

    def test_missing_fields(self):
        self._start()
        response = self.client.post("/api/game/answer", json={"userId": "user-1", "answer": "hi"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("questionId", response.json()["error"])

    def test_unknown_session(self):
        response = self._answer("start", "hi", user_id="ghost")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Session not found"})

    def test_stale_question(self):
        self._start()
        response = self._answer("credit_conversation", "good")
        self.assertEqual(response.status_code, 409)

    def test_completion(self):
        self._start()
        steps = [
            ("start", "Just exploring"),
            ("financial_comfort", "$450"),
            ("down_payment_reality", "$3,000"),
            ("credit_conversation", "Excellent, around 780"),
            ("lifestyle_mission", "Long commute every day"),
            ("commute_reality", "30 miles, mostly highway"),
            ("priorities_tradeoffs", "Best fuel economy"),
        ]
        for question_id, answer in steps:
            self.assertEqual(self._answer(question_id, answer).status_code, 200)

        body = self._answer("toyota_connection", "Totally open").json()
        self.assertTrue(body["complete"])
        self.assertEqual(body["message"], "Journey complete! Calculating matches...")
        self.assertEqual(body["userData"]["buyerType"], "exploring")
        self.assertEqual(body["userData"]["creditScore"], "excellent")
        self.assertEqual(body["userData"]["lifestyle"]["primaryUse"], "commute")
        self.assertNotIn("tradeIn", body["userData"])

        status = self.client.get("/api/game/status/user-1").json()
        self.assertEqual(status["state"], "complete")
        self.assertEqual(len(status["answered"]), 8)

    def test_status_unknown(self):
        body = self.client.get("/api/game/status/nobody").json()
        self.assertEqual(body["state"], "awaiting_start")

    def test_graph_error_is_not_leaked(self):
        self.runtime.engine.start = AsyncMock(
            side_effect=GraphConfigurationError("Rule 'x' on node 'y' returned undeclared target")
        )

        with self.assertLogs("api.handlers", level="ERROR") as logs:
            response = self._start()

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Something went wrong, please try again"})
        self.assertIn("undeclared target", logs.output[0])


class TestAudioRoutes(ApiTestCase):
    def test_serves_cached_audio(self):
        response = self.client.get("/api/game/audio/start")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["content-type"], "audio/mpeg")
        self.assertEqual(response.headers["cache-control"], "public, max-age=31536000")
        self.assertEqual(response.content, b"ID3-start")

    def test_missing_audio(self):
        response = self.client.get("/api/game/audio/financial_comfort")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Audio not found"})

    def test_stats(self):
        body = self.client.get("/api/game/audio-stats").json()
        self.assertEqual(body["totalFiles"], 1)
        self.assertEqual(body["files"], ["start.mp3"])

    def test_pregenerate_requires_auth(self):
        response = self.client.post("/api/game/pregenerate-audio")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "missing token"})

    def test_pregenerate(self):
        token = self._login().json()["token"]
        response = self.client.post(
            "/api/game/pregenerate-audio", headers={"Authorization": f"Bearer {token}"}
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["skipped"], ["start"])
        # Null provider: everything else degrades
        self.assertEqual(len(body["failed"]), len(self.runtime.graph) - 1)
        self.assertEqual(body["stats"]["totalFiles"], 1)


class TestPaymentSimulation(ApiTestCase):
    def test_simulation(self):
        self._start()
        self._answer("start", "first car")
        self._answer("financial_comfort", "$450")
        response = self.client.post(
            "/api/game/payment-simulation",
            json={"userId": "user-1", "vehicleName": "Camry", "msrp": 28_000},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["vehicleName"], "Camry")
        self.assertIn(body["recommendation"], ("finance", "lease"))
        self.assertEqual(body["userProfile"]["monthlyBudget"], 450)
        self.assertEqual(len(body["paymentSchedule"]), 12)

    def test_unknown_session(self):
        response = self.client.post(
            "/api/game/payment-simulation", json={"userId": "ghost", "msrp": 28_000}
        )
        self.assertEqual(response.status_code, 404)

    def test_missing_msrp(self):
        response = self.client.post("/api/game/payment-simulation", json={"userId": "user-1"})
        self.assertEqual(response.status_code, 400)


class TestAuthRoutes(ApiTestCase):
    def test_login_and_me(self):
        response = self._login()
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["user"]["email"], "abhamisaqi@email.com")

        me = self.client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["user"]["phone"], "555-111-2222")

    def test_bad_credentials(self):
        response = self._login(password="wrong-password")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "bad credentials"})

    def test_invalid_email(self):
        response = self._login(email="not-an-email")
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["error"], "Validation error")

    def test_me_with_bad_token(self):
        response = self.client.get("/api/auth/me", headers={"Authorization": "Bearer nonsense"})
        self.assertEqual(response.status_code, 401)


class TestHealth(ApiTestCase):
    def test_health(self):
        self._start()
        body = self.client.get("/api/health").json()
        self.assertEqual(body["status"], "healthy")
        self.assertEqual(body["questions"], 17)
        self.assertEqual(body["sessions"], 1)


if __name__ == "__main__":
    unittest.main()
