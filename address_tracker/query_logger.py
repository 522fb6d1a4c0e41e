"""
Логирование SQL запросов с выделением медленных

Подключается к движку через события SQLAlchemy. Запросы дольше порога
пишутся как WARNING, остальные как DEBUG.
"""

import logging
import re
import time
from typing import Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine

logger = logging.getLogger("address_tracker.db")

SLOW_THRESHOLD_MS = 200

_VALUES_RE = re.compile(r"values", re.IGNORECASE)
_START_KEY = "query_start_time"


def elide_values(sql: str) -> str:
    """Списки значений пакетных вставок бывают очень длинными - опускаем их"""
    match = _VALUES_RE.search(sql)
    if match is None or match.start() == 0:
        return sql
    return f"{sql[:match.start()]}VALUES (...)"


class QueryLogger:
    """Трассировка запросов движка SQLAlchemy"""

    def __init__(
        self,
        log: Optional[logging.Logger] = None,
        slow_threshold_ms: int = SLOW_THRESHOLD_MS,
    ):
        self.log = log or logger
        self.slow_threshold_ms = slow_threshold_ms

    def attach(self, engine: Engine) -> None:
        event.listen(engine, "before_cursor_execute", self._before_cursor_execute)
        event.listen(engine, "after_cursor_execute", self._after_cursor_execute)

    def detach(self, engine: Engine) -> None:
        event.remove(engine, "before_cursor_execute", self._before_cursor_execute)
        event.remove(engine, "after_cursor_execute", self._after_cursor_execute)

    def _before_cursor_execute(
        self, conn, cursor, statement, parameters, context, executemany
    ):
        conn.info.setdefault(_START_KEY, []).append(time.perf_counter())

    def _after_cursor_execute(
        self, conn, cursor, statement, parameters, context, executemany
    ):
        starts = conn.info.get(_START_KEY)
        if not starts:
            return
        elapsed_ms = int((time.perf_counter() - starts.pop()) * 1000)
        self.trace(statement, elapsed_ms, cursor.rowcount)

    def trace(self, sql: str, elapsed_ms: int, rows_affected: int) -> None:
        sql = elide_values(sql)
        message = (
            f"database operation duration_ms={elapsed_ms} "
            f"rows_affected={rows_affected} sql={sql}"
        )
        if elapsed_ms < self.slow_threshold_ms:
            self.log.debug(message)
        else:
            self.log.warning(message)
