"""
Повтор операций с настраиваемой стратегией задержки
"""

import logging
import time
from typing import Callable, Optional, Tuple, TypeVar

from address_tracker.retry.context import Context
from address_tracker.retry.strategies import Strategy

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")


class RetryConfigError(ValueError):
    """Некорректные параметры повтора (никогда не повторяется)"""

    pass


class FailedPermanentlyError(Exception):
    """
    Операция не удалась после всех попыток

    Исходная ошибка доступна через last_error и __cause__.
    """

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"operation failed permanently after {attempts} attempts: {last_error}"
        )


def do(
    ctx: Optional[Context],
    max_attempts: int,
    strategy: Strategy,
    op: Callable[[], T],
) -> T:
    """
    Выполнение операции с повторами

    Контекст проверяется перед каждой попыткой. Задержка между попытками
    не прерывается отменой: отмена будет замечена на следующей границе.

    Args:
        ctx: Контекст отмены (None - фоновый контекст)
        max_attempts: Максимальное количество попыток, не меньше 1
        strategy: Стратегия задержки между попытками
        op: Операция без аргументов; исключение означает неудачу

    Returns:
        Результат первой успешной попытки

    Raises:
        RetryConfigError: max_attempts < 1
        ContextCancelledError: Контекст отменен или истек
        FailedPermanentlyError: Все попытки неудачны
    """
    if max_attempts < 1:
        raise RetryConfigError(
            f"need at least 1 attempt to run op, but have {max_attempts} max attempts"
        )
    if ctx is None:
        ctx = Context.background()

    last_error: Optional[Exception] = None
    for attempt in range(max_attempts):
        ctx_err = ctx.err()
        if ctx_err is not None:
            raise ctx_err

        try:
            return op()
        except Exception as e:
            last_error = e

        if attempt != max_attempts - 1:
            delay = strategy.duration(attempt)
            logger.warning(
                f"Ошибка операции (попытка {attempt + 1}/{max_attempts}), "
                f"повтор через {delay:.2f}с: {last_error}"
            )
            time.sleep(delay)

    logger.error(f"Операция не удалась после {max_attempts} попыток: {last_error}")
    raise FailedPermanentlyError(max_attempts, last_error) from last_error


def do2(
    ctx: Optional[Context],
    max_attempts: int,
    strategy: Strategy,
    op: Callable[[], Tuple[T, U]],
) -> Tuple[T, U]:
    """Повтор операции, возвращающей пару значений"""

    def bundled() -> Tuple[T, U]:
        first, second = op()
        return first, second

    return do(ctx, max_attempts, strategy, bundled)
