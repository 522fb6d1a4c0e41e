"""
Стратегии задержки между попытками
"""

import random
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

# 2**63 секунд все равно больше любого разумного потолка
_MAX_EXPONENT = 63


class Strategy(ABC):
    """Отображение номера попытки в длительность ожидания (секунды)"""

    @abstractmethod
    def duration(self, attempt: int) -> float:
        """
        Задержка после неудачной попытки

        Args:
            attempt: Номер попытки, начиная с 0
        """
        ...


@dataclass
class ExponentialStrategy(Strategy):
    """
    Экспоненциальная задержка со случайным джиттером

    wait = min(max, min * 2**attempt) + uniform(0, max_jitter)

    Attributes:
        min: Базовая задержка в секундах
        max: Потолок задержки без учета джиттера
        max_jitter: Верхняя граница случайной добавки
    """

    min: float = 0.0
    max: float = 10.0
    max_jitter: float = 0.25
    rng: random.Random = field(
        default_factory=random.Random, repr=False, compare=False
    )
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def duration(self, attempt: int) -> float:
        attempt = min(max(attempt, 0), _MAX_EXPONENT)
        ceiling = max(self.max, 0.0)
        delay = min(ceiling, max(self.min, 0.0) * (2**attempt))

        jitter = 0.0
        if self.max_jitter > 0:
            # random.Random не потокобезопасен при общем использовании
            with self._lock:
                jitter = self.rng.uniform(0, self.max_jitter)
        return delay + jitter


@dataclass
class FixedStrategy(Strategy):
    """Постоянная задержка"""

    dur: float = 1.0

    def duration(self, attempt: int) -> float:
        return max(self.dur, 0.0)


def exponential() -> Strategy:
    """Стратегия по умолчанию: от 1 до 10 секунд с джиттером 250 мс"""
    return ExponentialStrategy(min=1.0, max=10.0, max_jitter=0.25)


def fixed(dur: float) -> Strategy:
    return FixedStrategy(dur=dur)
