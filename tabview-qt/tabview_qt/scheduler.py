from typing import Any, Callable, List, Optional

from PyQt5.QtCore import QObject, QTimer


class QtTimerHandle:
    """The handle of a call scheduled with `QtScheduler`.

    Attributes:
        timer: The single-shot timer that runs the call.
    """

    timer: QTimer

    def __init__(self, timer: QTimer) -> None:
        self.timer = timer

    @property
    def active(self) -> bool:
        return self.timer.isActive()

    def cancel(self) -> None:
        self.timer.stop()


class QtScheduler(QObject):
    """Scheduler for `tabview.debounce.Debouncer` based on `QTimer`.

    The calls run in the thread of the scheduler, which must have a
    running Qt event loop (usually the GUI thread). Use it for engines
    that are shown through `TableViewModel` so that the model is reset in
    the GUI thread.
    """

    _timers: List[QTimer]

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._timers = []

    def call_later(
        self, delay: float, callback: Callable[[], Any]
    ) -> QtTimerHandle:
        # Timers that fired or were stopped are no longer needed.
        for timer in [t for t in self._timers if not t.isActive()]:
            self._timers.remove(timer)
            timer.deleteLater()

        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.timeout.connect(callback)
        self._timers.append(timer)
        timer.start(max(int(delay * 1000), 0))
        return QtTimerHandle(timer)

    @property
    def active_count(self) -> int:
        """The number of calls that wait."""
        return sum(1 for t in self._timers if t.isActive())
