from __future__ import annotations

from typing import Optional, Protocol

from tqdm import tqdm


class ProgressReporter(Protocol):
    """Receives download progress. ``start`` is told up front whether the size is known."""

    def start(self, total: Optional[int], label: str) -> None: ...
    def advance(self, nbytes: int) -> None: ...
    def set_message(self, message: str) -> None: ...
    def finish(self, message: str) -> None: ...


class TqdmProgress:
    """
    Progress bar on stderr.

    With a known total (Content-Length) tqdm renders a percentage bar with an
    ETA; with ``total=None`` it falls back to a running byte counter and rate.
    """

    def __init__(self, leave: bool = True) -> None:
        self.leave = leave
        self._bar: Optional[tqdm] = None

    def start(self, total: Optional[int], label: str) -> None:
        self._bar = tqdm(
            total=total,
            desc=label,
            unit="B",
            unit_scale=True,
            unit_divisor=1024,
            leave=self.leave,
        )

    def advance(self, nbytes: int) -> None:
        if self._bar is not None:
            self._bar.update(nbytes)

    def set_message(self, message: str) -> None:
        if self._bar is not None:
            self._bar.set_postfix_str(message, refresh=False)

    def finish(self, message: str) -> None:
        if self._bar is None:
            return
        self._bar.set_postfix_str(message)
        self._bar.close()
        self._bar = None


class NullProgress:
    def start(self, total: Optional[int], label: str) -> None:
        pass

    def advance(self, nbytes: int) -> None:
        pass

    def set_message(self, message: str) -> None:
        pass

    def finish(self, message: str) -> None:
        pass
