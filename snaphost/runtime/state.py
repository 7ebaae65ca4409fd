# snaphost/runtime/state.py
from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Tuple

from snaphost.model.modules import ModuleRecord
from snaphost.model.status import ConnectionResult, EnclosureSnapshot, ModuleListing, ToolSnapshot


@dataclass(frozen=True)
class SessionSnapshot:
    """
    A snapshot of the full session state, safe to share across threads.
    """
    base_url: str
    connected: bool
    read_only: bool
    head_type: int
    has_enclosure: bool
    busy: bool
    tool: ToolSnapshot
    enclosure: EnclosureSnapshot
    modules: Tuple[ModuleRecord, ...]
    module_listing: ModuleListing


class SessionState:
    """
    Live, mutable state of one machine session.

    All fields are read and written with `lock` held. `cond` is built on
    the same lock and is notified whenever `busy`, `closing` or `connected` changes,
    so motion-gate waiters wake without polling.
    """

    def __init__(self, *, base_url: str, token: str, conn: ConnectionResult):
        self.base_url = base_url
        self.token = token

        self.lock = threading.RLock()
        self.cond = threading.Condition(self.lock)

        self.connected = True
        self.closing = False
        self.read_only = conn.read_only
        self.head_type = conn.head_type
        self.has_enclosure = conn.has_enclosure
        self.busy = False

        self.tool = ToolSnapshot()
        self.enclosure = EnclosureSnapshot()
        self.modules: Tuple[ModuleRecord, ...] = ()
        self.module_listing = ModuleListing()

    def set_tool(self, tool: ToolSnapshot) -> None:
        with self.lock:
            self.tool = tool

    def set_enclosure(self, enclosure: EnclosureSnapshot) -> None:
        with self.lock:
            self.enclosure = enclosure

    def set_modules(self, modules: Tuple[ModuleRecord, ...]) -> None:
        with self.lock:
            self.modules = tuple(modules)

    def set_module_listing(self, listing: ModuleListing) -> None:
        with self.lock:
            self.module_listing = listing

    def update_position(self, x: float, y: float, z: float) -> None:
        with self.lock:
            self.tool = replace(self.tool, x=float(x), y=float(y), z=float(z))

    def begin_closing(self) -> bool:
        """
        Claim the right to tear the session down.

        Returns False if the session is already disconnected or another
        caller is closing it. Once closing, the session admits no new
        motion and no new refreshes.
        """
        with self.cond:
            if not self.connected or self.closing:
                return False
            self.closing = True
            self.cond.notify_all()
            return True

    def mark_disconnected(self) -> None:
        with self.cond:
            self.connected = False
            self.cond.notify_all()

    def is_connected(self) -> bool:
        with self.lock:
            return self.connected

    def is_usable(self) -> bool:
        """Connected and not being torn down."""
        with self.lock:
            return self.connected and not self.closing

    def snapshot(self) -> SessionSnapshot:
        with self.lock:
            return SessionSnapshot(
                base_url=self.base_url,
                connected=self.connected,
                read_only=self.read_only,
                head_type=self.head_type,
                has_enclosure=self.has_enclosure,
                busy=self.busy,
                tool=self.tool,
                enclosure=self.enclosure,
                modules=self.modules,
                module_listing=self.module_listing,
            )
