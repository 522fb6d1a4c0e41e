"""
Контекст отмены для длительных операций

Передается явно через цепочку вызовов. Отмена кооперативная:
исполнитель повторов проверяет контекст только на границах попыток.
"""

import threading
import time
from typing import Optional


class ContextCancelledError(Exception):
    """Контекст был отменен"""

    def __init__(self, cause: Optional[BaseException] = None):
        self.cause = cause
        message = "контекст отменен"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class DeadlineExceededError(ContextCancelledError):
    """Истек срок действия контекста"""

    def __init__(self, deadline: float):
        self.deadline = deadline
        super().__init__()
        self.args = ("истек срок действия контекста",)


class Context:
    """
    Токен отмены с необязательным дедлайном

    Дедлайн задается в секундах монотонных часов (time.monotonic).
    Дочерний контекст отменяется вместе с родителем.
    """

    def __init__(
        self,
        deadline: Optional[float] = None,
        parent: Optional["Context"] = None,
    ):
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._cause: Optional[BaseException] = None
        self._parent = parent
        if parent is not None and parent.deadline is not None:
            deadline = (
                parent.deadline if deadline is None else min(deadline, parent.deadline)
            )
        self.deadline = deadline

    @classmethod
    def background(cls) -> "Context":
        """Пустой контекст: никогда не отменяется сам"""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> "Context":
        return cls(deadline=time.monotonic() + seconds)

    def child(self, timeout: Optional[float] = None) -> "Context":
        deadline = None if timeout is None else time.monotonic() + timeout
        return Context(deadline=deadline, parent=self)

    def cancel(self, cause: Optional[BaseException] = None) -> None:
        """Отмена контекста; повторный вызов не меняет первую причину"""
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cause = cause
            self._cancelled.set()

    @property
    def cause(self) -> Optional[BaseException]:
        if self._cancelled.is_set():
            return self._cause
        if self._parent is not None:
            return self._parent.cause
        return None

    def err(self) -> Optional[ContextCancelledError]:
        """
        Ошибка контекста или None, если контекст активен

        Отмена имеет приоритет над истекшим дедлайном.
        """
        if self._cancelled.is_set():
            return ContextCancelledError(self._cause)
        if self._parent is not None:
            parent_err = self._parent.err()
            if parent_err is not None:
                return parent_err
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return DeadlineExceededError(self.deadline)
        return None

    @property
    def done(self) -> bool:
        return self.err() is not None
