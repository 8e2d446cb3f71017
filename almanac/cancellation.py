"""Cooperative cancellation for in-flight queries."""

from almanac.errors import StaleResultDiscarded


class CancellationToken:
    """Flag shared between a controller and the store call it issued.

    Cancelling never interrupts the underlying I/O; the holder checks the
    flag before applying a result.
    """

    __slots__ = ("_cancelled", "label")

    def __init__(self, label: str = ""):
        self._cancelled = False
        self.label = label

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise StaleResultDiscarded(f"Query {self.label or '<anonymous>'} was superseded")

    def __repr__(self) -> str:
        return f"CancellationToken(label={self.label!r}, cancelled={self._cancelled})"
