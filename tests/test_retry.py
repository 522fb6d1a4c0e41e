"""
Тесты для повторов операций и стратегий задержки
"""

import random
import time
import unittest
from unittest.mock import MagicMock, patch

from address_tracker.retry import (
    Context,
    ContextCancelledError,
    DeadlineExceededError,
    ExponentialStrategy,
    FailedPermanentlyError,
    FixedStrategy,
    RetryConfigError,
    do,
    do2,
    exponential,
    fixed,
)


class FlakyOperation:
    """Операция, которая падает заданное количество раз"""

    def __init__(self, failures: int, result="ok"):
        self.failures = failures
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError(f"failure #{self.calls}")
        return self.result


@patch("address_tracker.retry.operation.time.sleep")
class TestDo(unittest.TestCase):
    """Тесты для retry.do"""

    def test_success_after_failures(self, mock_sleep):
        """Тест: k неудач из n попыток - результат и ровно k задержек"""
        for max_attempts in range(1, 6):
            for failures in range(max_attempts):
                mock_sleep.reset_mock()
                op = FlakyOperation(failures)

                result = do(Context.background(), max_attempts, fixed(0.5), op)

                self.assertEqual(result, "ok")
                self.assertEqual(op.calls, failures + 1)
                self.assertEqual(mock_sleep.call_count, failures)

    def test_first_attempt_success(self, mock_sleep):
        """Тест успешной первой попытки"""
        result = do(None, 3, fixed(1), lambda: 42)

        self.assertEqual(result, 42)
        mock_sleep.assert_not_called()

    def test_invalid_max_attempts(self, mock_sleep):
        """Тест некорректного количества попыток"""
        for max_attempts in (0, -1, -10):
            op = MagicMock()
            with self.assertRaises(RetryConfigError) as cm:
                do(Context.background(), max_attempts, fixed(0), op)

            self.assertIn(str(max_attempts), str(cm.exception))
            op.assert_not_called()
        mock_sleep.assert_not_called()

    def test_config_error_is_value_error(self, mock_sleep):
        """Тест: ошибка конфигурации - ValueError"""
        with self.assertRaises(ValueError):
            do(None, 0, fixed(0), lambda: None)

    def test_cancelled_context(self, mock_sleep):
        """Тест отмененного контекста до первой попытки"""
        ctx = Context.background()
        cause = RuntimeError("shutdown")
        ctx.cancel(cause)
        op = MagicMock()

        with self.assertRaises(ContextCancelledError) as cm:
            do(ctx, 5, fixed(0), op)

        self.assertIs(cm.exception.cause, cause)
        op.assert_not_called()
        mock_sleep.assert_not_called()

    def test_expired_deadline(self, mock_sleep):
        """Тест истекшего дедлайна"""
        ctx = Context(deadline=time.monotonic() - 1)
        op = MagicMock()

        with self.assertRaises(DeadlineExceededError):
            do(ctx, 5, fixed(0), op)

        op.assert_not_called()

    def test_cancel_between_attempts(self, mock_sleep):
        """Тест отмены на границе попыток"""
        ctx = Context.background()
        calls = []

        def op():
            calls.append(1)
            ctx.cancel()
            raise ConnectionError("down")

        with self.assertRaises(ContextCancelledError):
            do(ctx, 5, fixed(0), op)

        self.assertEqual(len(calls), 1)
        # задержка не прерывается, отмена замечается на следующей попытке
        self.assertEqual(mock_sleep.call_count, 1)

    def test_failed_permanently(self, mock_sleep):
        """Тест исчерпания попыток"""
        op = FlakyOperation(failures=10)

        with self.assertRaises(FailedPermanentlyError) as cm:
            do(Context.background(), 3, fixed(0), op)

        error = cm.exception
        self.assertEqual(error.attempts, 3)
        self.assertIsInstance(error.last_error, ConnectionError)
        self.assertEqual(str(error.last_error), "failure #3")
        self.assertIs(error.__cause__, error.last_error)
        self.assertIn("3 attempts", str(error))
        self.assertEqual(op.calls, 3)
        self.assertEqual(mock_sleep.call_count, 2)

    def test_sleeps_follow_strategy(self, mock_sleep):
        """Тест: задержки берутся из стратегии по номеру попытки"""
        strategy = MagicMock()
        strategy.duration.side_effect = lambda attempt: attempt * 10.0
        op = FlakyOperation(failures=3)

        do(Context.background(), 5, strategy, op)

        self.assertEqual(
            [c.args[0] for c in strategy.duration.call_args_list], [0, 1, 2]
        )
        self.assertEqual(
            [c.args[0] for c in mock_sleep.call_args_list], [0.0, 10.0, 20.0]
        )

    def test_do2_returns_pair(self, mock_sleep):
        """Тест повтора операции с двумя результатами"""
        attempts = []

        def op():
            attempts.append(1)
            if len(attempts) < 2:
                raise TimeoutError("slow")
            return "engine", 7

        first, second = do2(Context.background(), 3, fixed(0), op)

        self.assertEqual((first, second), ("engine", 7))
        self.assertEqual(mock_sleep.call_count, 1)

    def test_do2_failed_permanently(self, mock_sleep):
        """Тест исчерпания попыток для do2"""

        def op():
            raise TimeoutError("slow")

        with self.assertRaises(FailedPermanentlyError) as cm:
            do2(None, 2, fixed(0), op)

        self.assertIsInstance(cm.exception.__cause__, TimeoutError)


class TestExponentialStrategy(unittest.TestCase):
    """Тесты экспоненциальной стратегии"""

    def test_doubles_until_ceiling(self):
        """Тест удвоения задержки до потолка"""
        strategy = ExponentialStrategy(min=1.0, max=20.0, max_jitter=0)

        durations = [strategy.duration(i) for i in range(8)]

        self.assertEqual(durations, [1.0, 2.0, 4.0, 8.0, 16.0, 20.0, 20.0, 20.0])

    def test_bounded_with_jitter(self):
        """Тест: задержка в пределах [0, max + max_jitter]"""
        strategy = ExponentialStrategy(
            min=1.0, max=20.0, max_jitter=0.25, rng=random.Random(42)
        )

        for attempt in range(-5, 200):
            value = strategy.duration(attempt)
            self.assertGreaterEqual(value, 0)
            self.assertLessEqual(value, 20.25)

    def test_non_decreasing_in_expectation(self):
        """Тест: средняя задержка не убывает с номером попытки"""
        strategy = ExponentialStrategy(
            min=0.5, max=20.0, max_jitter=0.25, rng=random.Random(7)
        )

        means = []
        for attempt in range(10):
            samples = [strategy.duration(attempt) for _ in range(200)]
            means.append(sum(samples) / len(samples))

        for previous, current in zip(means, means[1:]):
            # допуск на разброс джиттера между выборками
            self.assertGreaterEqual(current, previous - 0.05)

    def test_negative_attempt(self):
        """Тест отрицательного номера попытки"""
        strategy = ExponentialStrategy(min=1.0, max=20.0, max_jitter=0)

        self.assertEqual(strategy.duration(-3), 1.0)

    def test_huge_attempt(self):
        """Тест очень большого номера попытки"""
        strategy = ExponentialStrategy(min=1.0, max=20.0, max_jitter=0)

        self.assertEqual(strategy.duration(10**6), 20.0)

    def test_default_strategy(self):
        """Тест стратегии по умолчанию"""
        strategy = exponential()

        self.assertEqual((strategy.min, strategy.max, strategy.max_jitter), (1.0, 10.0, 0.25))


class TestFixedStrategy(unittest.TestCase):
    """Тесты постоянной стратегии"""

    def test_constant(self):
        strategy = FixedStrategy(dur=2.5)

        self.assertEqual({strategy.duration(i) for i in range(10)}, {2.5})

    def test_negative_clamped(self):
        self.assertEqual(fixed(-1).duration(0), 0.0)


class TestContext(unittest.TestCase):
    """Тесты контекста отмены"""

    def test_background_never_done(self):
        ctx = Context.background()

        self.assertFalse(ctx.done)
        self.assertIsNone(ctx.err())

    def test_first_cause_wins(self):
        """Тест: повторная отмена не меняет причину"""
        ctx = Context.background()
        first = RuntimeError("first")
        ctx.cancel(first)
        ctx.cancel(RuntimeError("second"))

        self.assertIs(ctx.err().cause, first)
        self.assertIn("first", str(ctx.err()))

    def test_child_follows_parent(self):
        """Тест отмены дочернего контекста вместе с родителем"""
        parent = Context.background()
        child = parent.child()
        parent.cancel(RuntimeError("stop"))

        self.assertTrue(child.done)
        self.assertIsInstance(child.err(), ContextCancelledError)
        self.assertEqual(str(child.cause), "stop")

    def test_child_cancel_does_not_affect_parent(self):
        parent = Context.background()
        child = parent.child()
        child.cancel()

        self.assertTrue(child.done)
        self.assertFalse(parent.done)

    def test_timeout(self):
        """Тест истечения срока контекста"""
        ctx = Context.with_timeout(0)

        self.assertIsInstance(ctx.err(), DeadlineExceededError)

    def test_child_inherits_earlier_deadline(self):
        parent = Context(deadline=time.monotonic() - 1)
        child = parent.child(timeout=3600)

        self.assertIsInstance(child.err(), DeadlineExceededError)


if __name__ == "__main__":
    unittest.main()
