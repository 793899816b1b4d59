# biblio_export/application/processing/result_slots.py

"""Index-addressed result arena for order-preserving batch merges"""


class ResultSlots[T]:
    """One slot per record position, each filled exactly once

    Only the collecting thread reserves and fills slots, so no locking is
    needed. Reading back in index order gives request order regardless of
    completion order.
    """

    __slots__ = ("_slots", "_filled")

    def __init__(self) -> None:
        self._slots: list[T | None] = []
        self._filled: list[bool] = []

    def reserve(self) -> int:
        """Append an empty slot and return its index"""
        self._slots.append(None)
        self._filled.append(False)
        return len(self._slots) - 1

    def fill(self, index: int, value: T) -> None:
        if self._filled[index]:
            raise RuntimeError(f"Slot {index} is already filled")
        self._slots[index] = value
        self._filled[index] = True

    def is_filled(self, index: int) -> bool:
        return self._filled[index]

    def unresolved(self) -> list[int]:
        return [index for index, filled in enumerate(self._filled) if not filled]

    def in_order(self) -> list[T]:
        """All values by index

        Raises:
            RuntimeError: If any slot is still empty
        """
        missing = self.unresolved()
        if missing:
            raise RuntimeError(f"Unresolved slots: {missing}")
        return [value for value in self._slots if value is not None]

    def __len__(self) -> int:
        return len(self._slots)
