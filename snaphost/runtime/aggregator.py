# snaphost/runtime/aggregator.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Optional

from snaphost.core.errors import NotConnectedError
from snaphost.protocol.api_client import MachineApiClient
from .state import SessionState

# When several queries of one refresh fail, the first failed query in this
# order is the one reported.
ERROR_PRIORITY = ("enclosure", "module", "tool")


class StatusAggregator:
    """
    Refreshes the cached tool, module and enclosure snapshots.

    The queries of one refresh run concurrently on a short-lived pool and
    are all joined before refresh() returns. Each query stores its own
    snapshot as soon as it succeeds, so one failing query never blocks the
    others from updating.
    """

    def __init__(self, client: MachineApiClient, logger: Optional[logging.Logger] = None):
        self._client = client
        self._log = logger or logging.getLogger(__name__)

    def refresh(self, state: SessionState) -> None:
        with state.lock:
            if not state.connected or state.closing:
                raise NotConnectedError("Cannot refresh status: session is not connected.")
            has_enclosure = state.has_enclosure

        queries: Dict[str, Callable[[], None]] = {
            "tool": lambda: state.set_tool(self._client.get_status()),
            "module": lambda: state.set_modules(self._client.get_module_info()),
        }
        if has_enclosure:
            queries["enclosure"] = lambda: state.set_enclosure(self._client.get_enclosure())

        errors: Dict[str, BaseException] = {}
        with ThreadPoolExecutor(max_workers=len(queries), thread_name_prefix="snaphost-refresh") as pool:
            futures = {name: pool.submit(fn) for name, fn in queries.items()}
            for name, fut in futures.items():
                err = fut.exception()
                if err is not None:
                    self._log.debug("REFRESH_QUERY_FAILED query=%s err=%s", name, err)
                    errors[name] = err

        for name in ERROR_PRIORITY:
            if name in errors:
                raise errors[name]

    def refresh_module_list(self, state: SessionState) -> None:
        if not state.is_usable():
            raise NotConnectedError("Cannot list modules: session is not connected.")
        state.set_module_listing(self._client.get_module_list())
