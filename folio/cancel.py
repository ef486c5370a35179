"""Cooperative cancellation for builds.

A serve-mode rebuild supersedes the build in flight by setting its token.
Stages check the token between documents and before each write, and
unwind with BuildCancelled before committing anything further.
"""

from __future__ import annotations

import threading

from .errors import BuildCancelled


class CancelToken:
    """Thread-safe cancellation flag shared by one build's stages."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise BuildCancelled("Build was superseded")
