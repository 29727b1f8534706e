from tests.board.base import INTERVAL_MS, BoardTestCase
from unison_board.board import RateLimiter
from unison_board.board.rate_limiter import RATE_LIMITS_KEY


class RateLimiterTests(BoardTestCase):
    def setUp(self) -> None:
        super().setUp()
        self._limiter = RateLimiter(self._ledger, self._clock, interval_ms=INTERVAL_MS)

    def test_second_request_within_interval_is_rejected(self) -> None:
        self.assertTrue(self._run(self._limiter.check("10.0.0.1")))
        self._clock.advance(INTERVAL_MS - 1)
        self.assertFalse(self._run(self._limiter.check("10.0.0.1")))
        self._clock.advance(1)
        self.assertTrue(self._run(self._limiter.check("10.0.0.1")))

    def test_rejection_does_not_reset_the_window(self) -> None:
        self._run(self._limiter.check("10.0.0.1"))
        accepted_at = self._clock.now_ms()
        self._clock.advance(1000)
        self._run(self._limiter.check("10.0.0.1"))
        self.assertEqual(accepted_at, self._run(self._ledger.get(RATE_LIMITS_KEY))["10.0.0.1"])

    def test_keys_are_independent(self) -> None:
        self.assertTrue(self._run(self._limiter.check("a")))
        self.assertTrue(self._run(self._limiter.check("b")))
        self.assertFalse(self._run(self._limiter.check("a")))

    def test_stale_entries_are_pruned_on_accept(self) -> None:
        self._run(self._limiter.check("old"))
        self._clock.advance(INTERVAL_MS)
        self._run(self._limiter.check("new"))
        self.assertEqual({"new": self._clock.now_ms()}, self._run(self._ledger.get(RATE_LIMITS_KEY)))
        self.assertTrue(self._run(self._limiter.check("old")))
