"""Preview-aware invalidation of pending query results.

Consumers keep query results in a PendingResults registry, keyed by their own
query key and tagged with the preview token the query resolved to. When an
editor opens a preview session, results fetched before it were computed
against published content and must not be served again.

PreviewRemountController watches for that transition. On mount it reads the
preview token once; if a token is present and differs from the one recorded
at the previous mount, it discards every pending result (the equivalent of
unmounting and remounting the consuming subtree) exactly once. A marker in a
session-scoped store records the token it reacted to, so later mounts with
the same token do nothing.

Transitions:
    normal   -> preview A : invalidate, marker = A
    preview A -> preview A : nothing
    preview A -> preview B : invalidate, marker = B
    preview A -> normal    : marker cleared, nothing invalidated

Examples:
    Client-side wiring::

        results = PendingResults()
        controller = PreviewRemountController(results, session_storage)

        controller.mount(document_cookie)
        page = await results.fetch(("page", uid), get_page_query, context)
"""

import asyncio
from collections.abc import Callable, Hashable, MutableMapping
from typing import Any

from headless_middleware.core.preview import PreviewSession
from headless_middleware.core.query import BoundQuery, QueryContext
from headless_middleware.observability.logging import get_logger
from headless_middleware.observability.metrics import record_remount

logger = get_logger(__name__)

REMOUNT_MARKER = "headless.preview.remounted"


class PendingResults:
    """Memoizes in-flight and settled query results per preview session.

    Each entry is an asyncio.Task keyed by ``(session_key, key)``. A task
    that fails is dropped once it settles, so the next fetch re-executes the
    query; its awaiters still see the failure.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str | None, Hashable], asyncio.Task[Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def fetch(self, key: Hashable, query: BoundQuery, context: QueryContext) -> "asyncio.Task[Any]":
        """Return the pending result for ``key``, starting the query if needed.

        Must be called from a running event loop.
        """
        entry_key = (query.session_key(context), key)
        task = self._entries.get(entry_key)
        if task is not None:
            return task

        task = asyncio.ensure_future(query(context))
        self._entries[entry_key] = task
        task.add_done_callback(lambda t: self._drop_failed(entry_key, t))
        return task

    def _drop_failed(self, entry_key: tuple[str | None, Hashable], task: "asyncio.Task[Any]") -> None:
        if self._entries.get(entry_key) is not task:
            return
        if task.cancelled() or task.exception() is not None:
            del self._entries[entry_key]

    def sessions(self) -> set[str | None]:
        """Session keys that currently have entries."""
        return {session for session, _ in self._entries}

    def clear(self) -> int:
        """Discard every entry. In-flight tasks keep running for their awaiters.

        Returns:
            Number of entries discarded.
        """
        count = len(self._entries)
        self._entries.clear()
        return count


class PreviewRemountController:
    """Forces a one-time refetch when a new preview session starts.

    Attributes:
        results: The registry to invalidate.
        markers: Session-scoped store for the remount marker (the
            ``sessionStorage`` analogue). Defaults to a private dict.
        preview: Preview session detector.
        on_remount: Optional hook called after each invalidation with
            (previous_token, new_token).
        remount_count: Number of invalidations performed so far.
    """

    def __init__(
        self,
        results: PendingResults,
        markers: MutableMapping[str, str] | None = None,
        preview: PreviewSession | None = None,
        on_remount: Callable[[str | None, str], Any] | None = None,
    ) -> None:
        self.results = results
        self.markers: MutableMapping[str, str] = markers if markers is not None else {}
        self.preview = preview if preview is not None else PreviewSession()
        self.on_remount = on_remount
        self.remount_count = 0

    @property
    def current_session(self) -> str | None:
        """Token recorded at the last remount, if any."""
        return self.markers.get(REMOUNT_MARKER)

    def mount(self, source: Any) -> bool:
        """Check the preview cookie once and invalidate on a new session.

        Args:
            source: Where to read the preview cookie (see PreviewSession.detect).

        Returns:
            True if pending results were invalidated.
        """
        token = self.preview.detect(source)
        previous = self.markers.get(REMOUNT_MARKER)

        if token is None:
            if previous is not None:
                del self.markers[REMOUNT_MARKER]
                logger.info("preview.session_ended")
            return False

        if token == previous:
            return False

        # Marker first: a hook that mounts again must not re-trigger
        self.markers[REMOUNT_MARKER] = token
        discarded = self.results.clear()
        self.remount_count += 1
        record_remount()
        logger.info(
            "preview.remount",
            transition="preview_to_preview" if previous else "normal_to_preview",
            discarded=discarded,
        )
        if self.on_remount is not None:
            self.on_remount(previous, token)
        return True
