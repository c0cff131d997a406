import unittest
from unittest.mock import AsyncMock, call, patch

from src.importing.application.contracts import ModelServiceError, RateLimitError, RetryExhaustedError
from src.importing.application.retry import RetryPolicy, call_with_retry, is_rate_limit_error


class FlakyAction:
    def __init__(self, failures):
        self.failures = list(failures)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return "ok"


class RateLimitClassificationTests(unittest.TestCase):
    def test_detects_rate_limits_by_type_status_and_message(self):
        self.assertTrue(is_rate_limit_error(RateLimitError()))
        self.assertTrue(is_rate_limit_error(ModelServiceError("slow down", status=429)))
        self.assertTrue(is_rate_limit_error(RuntimeError("rate_limit_error: overloaded")))
        self.assertTrue(is_rate_limit_error(RuntimeError("HTTP 429 Too Many Requests")))

    def test_other_errors_are_not_rate_limits(self):
        self.assertFalse(is_rate_limit_error(ModelServiceError("bad request", status=400)))
        self.assertFalse(is_rate_limit_error(ValueError("boom")))


class RetryPolicyTests(unittest.TestCase):
    def test_delay_grows_linearly_with_attempt(self):
        policy = RetryPolicy()
        self.assertEqual([policy.delay_for(n) for n in (1, 2, 3)], [15.0, 30.0, 45.0])


class CallWithRetryTests(unittest.IsolatedAsyncioTestCase):
    async def test_two_rate_limits_then_success(self):
        action = FlakyAction([RateLimitError(), RateLimitError()])
        retries = []

        with patch("src.importing.application.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await call_with_retry(
                action,
                RetryPolicy(),
                on_retry=lambda attempt, max_retries, delay, exc: retries.append((attempt, max_retries, delay)),
            )

        self.assertEqual(result, "ok")
        self.assertEqual(action.calls, 3)
        self.assertEqual(sleep.await_args_list, [call(15.0), call(30.0)])
        self.assertEqual(retries, [(1, 3, 15.0), (2, 3, 30.0)])

    async def test_exhaustion_after_max_retries(self):
        last = RateLimitError("rate_limit_error: still busy")
        action = FlakyAction([RateLimitError(), RateLimitError(), RateLimitError(), last])

        with patch("src.importing.application.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with self.assertRaises(RetryExhaustedError) as ctx:
                await call_with_retry(action, RetryPolicy())

        self.assertEqual(action.calls, 4)
        self.assertEqual(sleep.await_args_list, [call(15.0), call(30.0), call(45.0)])
        self.assertEqual(ctx.exception.attempts, 4)
        self.assertIs(ctx.exception.last_error, last)
        self.assertIs(ctx.exception.__cause__, last)
        self.assertIn("still busy", str(ctx.exception))

    async def test_non_rate_limit_error_propagates_without_retry(self):
        action = FlakyAction([ModelServiceError("invalid request", status=400)])

        with patch("src.importing.application.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with self.assertRaises(ModelServiceError):
                await call_with_retry(action, RetryPolicy())

        self.assertEqual(action.calls, 1)
        sleep.assert_not_awaited()

    async def test_zero_retries_fails_on_first_rate_limit(self):
        action = FlakyAction([RateLimitError()])

        with patch("src.importing.application.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with self.assertRaises(RetryExhaustedError) as ctx:
                await call_with_retry(action, RetryPolicy(max_retries=0))

        self.assertEqual(ctx.exception.attempts, 1)
        sleep.assert_not_awaited()


if __name__ == "__main__":
    unittest.main()
