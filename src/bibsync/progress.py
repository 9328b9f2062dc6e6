"""Progress reporting for the long-running phases of a sync run."""

from __future__ import annotations

from typing import Optional, Protocol

from tqdm import tqdm


class ProgressReporter(Protocol):
    """Receives start/advance/finish notifications from the pipeline."""

    def start(self, total: int, desc: str) -> None: ...

    def advance(self, step: int = 1) -> None: ...

    def finish(self) -> None: ...


class NullProgress:
    """Reporter that discards every notification."""

    def start(self, total: int, desc: str) -> None:
        pass

    def advance(self, step: int = 1) -> None:
        pass

    def finish(self) -> None:
        pass


class TqdmProgress:
    """Console progress bar backed by :mod:`tqdm`."""

    def __init__(self, unit: str = "doc") -> None:
        self._unit = unit
        self._bar: Optional[tqdm] = None

    def start(self, total: int, desc: str) -> None:
        self.finish()
        self._bar = tqdm(total=total, desc=desc, unit=self._unit)

    def advance(self, step: int = 1) -> None:
        if self._bar is not None:
            self._bar.update(step)

    def finish(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None
