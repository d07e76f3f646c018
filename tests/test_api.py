"""HTTP-level tests for api.py using FastAPI's TestClient.

A FakeLLMClient is injected through create_app(llm_client=...), so no
request leaves the process.
"""

from __future__ import annotations

import unittest

from fastapi.testclient import TestClient

from api import FORGE_PATH, create_app
from functions.utils.errors import AIUnavailableError
from tests.utils_test_support import (
    SAMPLE_NARRATIVE,
    FakeLLMClient,
    LoggingTestCase,
    sample_reply_dict,
    sample_reply_text,
)

PARAMS = {
    "validation": {"narrative_min_chars": 30, "narrative_max_chars": 5000},
    "normalization": {"strict": False},
    "security": {},
}


class ApiTestCase(LoggingTestCase):
    def make_client(self, llm: FakeLLMClient | None = None) -> TestClient:
        self.llm = llm or FakeLLMClient(reply=sample_reply_text())
        return TestClient(create_app(llm_client=self.llm, params=PARAMS))


class TestForgeEndpoint(ApiTestCase):
    def test_end_to_end_success(self) -> None:
        client = self.make_client()
        resp = client.post(FORGE_PATH, json={"narrative": SAMPLE_NARRATIVE})

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertIsNone(body["error"])

        expected_phases = sample_reply_dict()["roadmap"]["phases"]
        phases = body["data"]["roadmap"]["phases"]
        self.assertEqual(len(phases), len(expected_phases))
        self.assertEqual([p["title"] for p in phases], [p["title"] for p in expected_phases])
        self.assertEqual(body["data"]["meta"]["inferredCareer"], "Platform Engineer")
        self.assertIn(SAMPLE_NARRATIVE, self.llm.prompts[0])

    def test_fenced_reply_succeeds(self) -> None:
        client = self.make_client(FakeLLMClient(reply=f"```json\n{sample_reply_text()}\n```"))
        resp = client.post(FORGE_PATH, json={"narrative": SAMPLE_NARRATIVE})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()["data"]["roadmap"]["phases"]), 3)

    def test_request_id_is_echoed(self) -> None:
        client = self.make_client()
        resp = client.post(
            FORGE_PATH, json={"narrative": SAMPLE_NARRATIVE}, headers={"X-Request-ID": "REQ_test"}
        )
        self.assertEqual(resp.headers["X-Request-ID"], "REQ_test")

    def test_request_id_is_generated(self) -> None:
        resp = self.make_client().post(FORGE_PATH, json={"narrative": SAMPLE_NARRATIVE})
        self.assertTrue(resp.headers["X-Request-ID"].startswith("REQ_"))


class TestForgeEndpointErrors(ApiTestCase):
    def _assert_error(self, resp, status: int, code: str) -> dict:
        self.assertEqual(resp.status_code, status)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertIsNone(body["data"])
        self.assertEqual(body["error"]["code"], code)
        return body

    def test_invalid_json_body(self) -> None:
        client = self.make_client()
        resp = client.post(
            FORGE_PATH, content=b"{not json", headers={"Content-Type": "application/json"}
        )
        self._assert_error(resp, 400, "INVALID_INPUT")
        self.assertEqual(self.llm.prompts, [])

    def test_empty_body(self) -> None:
        resp = self.make_client().post(FORGE_PATH, content=b"")
        self._assert_error(resp, 400, "INVALID_INPUT")

    def test_body_not_an_object(self) -> None:
        resp = self.make_client().post(FORGE_PATH, json=["narrative"])
        body = self._assert_error(resp, 400, "INVALID_INPUT")
        self.assertEqual(body["error"]["message"], "Request body must be a JSON object")

    def test_missing_narrative(self) -> None:
        resp = self.make_client().post(FORGE_PATH, json={"story": SAMPLE_NARRATIVE})
        body = self._assert_error(resp, 400, "INVALID_INPUT")
        self.assertEqual(body["error"]["message"], "Narrative is required")

    def test_short_and_long_narratives(self) -> None:
        client = self.make_client()
        for narrative in ("too short", "x" * 5001):
            with self.subTest(length=len(narrative)):
                resp = client.post(FORGE_PATH, json={"narrative": narrative})
                self._assert_error(resp, 400, "INVALID_INPUT")
        self.assertEqual(self.llm.prompts, [])

    def test_non_string_narrative(self) -> None:
        resp = self.make_client().post(FORGE_PATH, json={"narrative": 12345})
        body = self._assert_error(resp, 400, "INVALID_INPUT")
        self.assertEqual(body["error"]["message"], "Narrative must be a string")

    def test_upstream_failure_is_500_ai_error(self) -> None:
        client = self.make_client(FakeLLMClient(error=AIUnavailableError("Gemini API call failed: 503")))
        resp = client.post(FORGE_PATH, json={"narrative": SAMPLE_NARRATIVE})
        body = self._assert_error(resp, 500, "AI_ERROR")
        self.assertNotIn("503", body["error"]["message"])

    def test_unparseable_reply_is_500_without_leaking_reply(self) -> None:
        reply = '{"meta": {"inferredCareer": SECRET_MODEL_TEXT}}'
        client = self.make_client(FakeLLMClient(reply=reply))
        resp = client.post(FORGE_PATH, json={"narrative": SAMPLE_NARRATIVE})
        self._assert_error(resp, 500, "AI_ERROR")
        self.assertNotIn("SECRET_MODEL_TEXT", resp.text)


class TestMethodNotAllowed(ApiTestCase):
    def test_get_returns_405(self) -> None:
        client = self.make_client()
        resp = client.get(FORGE_PATH)
        self.assertEqual(resp.status_code, 405)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"]["code"], "METHOD_NOT_ALLOWED")
        self.assertEqual(resp.headers["Allow"], "POST")
        self.assertEqual(self.llm.prompts, [])

    def test_other_methods_return_405(self) -> None:
        client = self.make_client()
        for method in ("PUT", "PATCH", "DELETE"):
            with self.subTest(method=method):
                resp = client.request(method, FORGE_PATH, json={"narrative": SAMPLE_NARRATIVE})
                self.assertEqual(resp.status_code, 405)
        self.assertEqual(self.llm.prompts, [])

    def test_head_returns_405_with_allow_header(self) -> None:
        resp = self.make_client().head(FORGE_PATH)
        self.assertEqual(resp.status_code, 405)
        self.assertEqual(resp.headers["Allow"], "POST")

    def test_plain_options_gets_envelope(self) -> None:
        resp = self.make_client().options(FORGE_PATH)
        self.assertEqual(resp.status_code, 405)
        body = resp.json()
        self.assertNotIn("detail", body)
        self.assertEqual(body["error"]["code"], "METHOD_NOT_ALLOWED")

    def test_cors_preflight_still_allowed(self) -> None:
        resp = self.make_client().options(
            FORGE_PATH,
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        self.assertEqual(resp.status_code, 200)


class TestHealth(ApiTestCase):
    def test_health(self) -> None:
        resp = self.make_client().get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
