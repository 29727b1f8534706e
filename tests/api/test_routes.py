import unittest

from fastapi.testclient import TestClient

from tests.board.base import INTERVAL_MS, TTL_MS, ManualClock
from unison_board.api import create_app
from unison_board.board import BoardActor
from unison_board.ledger import InMemoryLedger


class BoardRoutesTests(unittest.TestCase):
    def setUp(self) -> None:
        self._clock = ManualClock()
        self._actor = BoardActor(
            InMemoryLedger(),
            clock=self._clock,
            rate_limit_interval_ms=INTERVAL_MS,
            session_ttl_ms=TTL_MS,
            max_active_tokens=2,
        )
        self._client = TestClient(create_app(self._actor, default_page_limit=20, max_page_limit=50))
        self._client.__enter__()

    def tearDown(self) -> None:
        self._client.__exit__(None, None, None)

    def _token(self) -> str:
        response = self._client.post("/api/token")
        self.assertEqual(200, response.status_code)
        return response.json()["data"]["token"]

    def _post(self, text: str, token: str | None, ip: str = "1.1.1.1", **extra):
        headers = {"CF-Connecting-IP": ip}
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
        return self._client.post("/api/messages", json={"text": text, **extra}, headers=headers)

    def test_health(self) -> None:
        self.assertEqual({"status": "ok"}, self._client.get("/health").json())

    def test_token_lifecycle(self) -> None:
        body = self._client.post("/api/token").json()
        self.assertTrue(body["success"])
        self.assertIn("expiresAt", body["data"])

        self._clock.advance(1000)
        refreshed = self._client.post("/api/token/refresh", json={"token": body["data"]["token"]})
        self.assertEqual(200, refreshed.status_code)
        self.assertGreater(refreshed.json()["data"]["expiresAt"], body["data"]["expiresAt"])

    def test_token_capacity_maps_to_503(self) -> None:
        self._token()
        self._token()
        response = self._client.post("/api/token")
        self.assertEqual(503, response.status_code)
        self.assertFalse(response.json()["success"])

    def test_refresh_errors(self) -> None:
        self.assertEqual(400, self._client.post("/api/token/refresh", json={}).status_code)
        self.assertEqual(401, self._client.post("/api/token/refresh", json={"token": "nope"}).status_code)

    def test_post_requires_valid_token(self) -> None:
        self.assertEqual(401, self._post("hello", None).status_code)
        self.assertEqual(401, self._post("hello", "bogus").status_code)

        token = self._token()
        self._clock.advance(TTL_MS)
        self.assertEqual(401, self._post("hello", token).status_code)

    def test_post_then_list(self) -> None:
        token = self._token()
        response = self._post("  hello board  ", token, mockSenderId="me")
        self.assertEqual(200, response.status_code)
        data = response.json()["data"]
        self.assertEqual("hello board", data[0]["text"])
        self.assertEqual("me", data[0]["authorTag"])

        listing = self._client.get("/api/messages").json()["data"]
        self.assertEqual(["hello board"], [m["text"] for m in listing["messages"]])
        self.assertFalse(listing["hasMore"])
        self.assertNotIn("nextCursorId", listing)

    def test_rate_limit_maps_to_429(self) -> None:
        token = self._token()
        self.assertEqual(200, self._post("one", token).status_code)
        self.assertEqual(429, self._post("two", token).status_code)
        self.assertEqual(200, self._post("three", token, ip="2.2.2.2").status_code)
        self._clock.advance(INTERVAL_MS)
        self.assertEqual(200, self._post("four", token).status_code)

    def test_empty_text_is_rejected(self) -> None:
        token = self._token()
        self.assertEqual(400, self._post("   ", token).status_code)
        listing = self._client.get("/api/messages").json()["data"]
        self.assertEqual([], listing["messages"])

    def test_pagination_over_http(self) -> None:
        token = self._token()
        for i in range(25):
            self.assertEqual(200, self._post(f"m{i}", token, ip=f"10.0.0.{i}").status_code)
            self._clock.advance(1)

        first = self._client.get("/api/messages", params={"limit": 20}).json()["data"]
        self.assertEqual(20, len(first["messages"]))
        self.assertTrue(first["hasMore"])
        self.assertEqual(first["messages"][-1]["id"], first["nextCursorId"])

        second = self._client.get(
            "/api/messages",
            params={
                "limit": 20,
                "cursorTimestamp": first["nextCursorTimestamp"],
                "cursorId": first["nextCursorId"],
            },
        ).json()["data"]
        self.assertEqual(["m4", "m3", "m2", "m1", "m0"], [m["text"] for m in second["messages"]])
        self.assertFalse(second["hasMore"])

    def test_malformed_bodies_use_error_envelope(self) -> None:
        token = self._token()
        headers = {"Authorization": f"Bearer {token}", "CF-Connecting-IP": "3.3.3.3"}
        cases = [
            self._client.post("/api/messages", content=b"not json", headers={**headers, "Content-Type": "application/json"}),
            self._client.post("/api/messages", json={"text": 42}, headers=headers),
            self._client.post("/api/messages", json={"text": "hi", "authorTag": ["x"]}, headers=headers),
            self._client.post("/api/token/refresh", json={"token": "   "}),
        ]
        for response in cases:
            self.assertEqual(400, response.status_code)
            body = response.json()
            self.assertFalse(body["success"])
            self.assertTrue(body["error"])

    def test_limit_is_clamped_to_maximum(self) -> None:
        token = self._token()
        for i in range(55):
            self._post(f"m{i}", token, ip=f"10.1.0.{i}")
        listing = self._client.get("/api/messages", params={"limit": 500}).json()["data"]
        self.assertEqual(50, len(listing["messages"]))
        self.assertTrue(listing["hasMore"])

    def test_invalid_limit(self) -> None:
        self.assertEqual(400, self._client.get("/api/messages", params={"limit": "0"}).status_code)
        self.assertEqual(400, self._client.get("/api/messages", params={"limit": "abc"}).status_code)


if __name__ == "__main__":
    unittest.main()
