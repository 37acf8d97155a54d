import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, List

logger = logging.getLogger(__name__)

Listener = Callable[[str, List[str]], None]


class TableChangeEvents:
    """
    In-process stand-in for the realtime channel: services publish
    "rows in table X changed" after a commit and subscribers (websocket
    fan-out, caches) react.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, table: str, callback: Listener) -> None:
        self._listeners[table].append(callback)

    def unsubscribe(self, table: str, callback: Listener) -> None:
        if callback in self._listeners.get(table, []):
            self._listeners[table].remove(callback)

    def publish(self, table: str, row_ids: Iterable[str]) -> None:
        ids = list(row_ids)
        for listener in list(self._listeners.get(table, [])):
            # The commit already happened; a broken subscriber must not turn it into a failure
            try:
                listener(table, ids)
            except Exception:
                logger.exception("Change listener for table %s failed", table)


table_events = TableChangeEvents()
