"""Program slots: independent path + shapes + description bundles."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from .config import ValidationError
from .geometry import Path, Shape

logger = logging.getLogger(__name__)


@dataclass
class ProgramSlot:
    index: int
    path: Path = field(default_factory=Path)
    shapes: List[Shape] = field(default_factory=list)
    description: str = ""

    @property
    def is_empty(self) -> bool:
        return len(self.path) == 0 and not self.shapes

    def clone(self) -> "ProgramSlot":
        return copy.deepcopy(self)


class ProgramStore:
    """Sparse mapping of slot index to :class:`ProgramSlot`.

    The active slot is edited through the working copies ``path``, ``shapes``
    and ``description``; they are written back to the mapping when another
    slot is activated, copied or exported.
    """

    def __init__(self, max_program_num: int = 10) -> None:
        self.max_program_num = max_program_num
        self.slots: Dict[int, ProgramSlot] = {}
        self.current_index = 1
        self.path = Path()
        self.shapes: List[Shape] = []
        self.description = ""

    # ------------------------------------------------------------------
    def validate_index(self, index: int) -> int:
        if isinstance(index, bool) or not isinstance(index, int):
            raise ValidationError(f"program index must be an integer, got {index!r}")
        if not 1 <= index <= self.max_program_num:
            raise ValidationError(f"program index {index} outside 1..{self.max_program_num}")
        return index

    def set_max_program_num(self, value: int) -> None:
        highest = max([self.current_index, *self.slots.keys()])
        if value < highest:
            raise ValidationError(f"maxProgramNum {value} is below the highest used slot {highest}")
        self.max_program_num = value

    def _working_copy(self, index: int) -> ProgramSlot:
        return ProgramSlot(
            index=index,
            path=self.path.clone(),
            shapes=[s.clone() for s in self.shapes],
            description=self.description,
        )

    def save_current(self) -> ProgramSlot:
        slot = self._working_copy(self.current_index)
        self.slots[self.current_index] = slot
        return slot

    def _load(self, index: int) -> None:
        slot = self.slots.get(index)
        if slot is None:
            self.path = Path()
            self.shapes = []
            self.description = ""
        else:
            self.path = slot.path.clone()
            self.shapes = [s.clone() for s in slot.shapes]
            self.description = slot.description

    # ------------------------------------------------------------------
    def switch_to(self, index: int) -> bool:
        """Autosave the active slot and load ``index``; False if already active."""

        self.validate_index(index)
        if index == self.current_index:
            return False
        self.save_current()
        self._load(index)
        logger.info("Switched program %d -> %d", self.current_index, index)
        self.current_index = index
        return True

    def copy_to(self, index: int) -> ProgramSlot:
        self.validate_index(index)
        if index == self.current_index:
            raise ValidationError("cannot copy a program onto itself")
        slot = self._working_copy(index)
        self.slots[index] = slot
        logger.info("Copied program %d to slot %d", self.current_index, index)
        return slot

    def clear_slot(self, index: int) -> None:
        self.validate_index(index)
        self.slots.pop(index, None)
        if index == self.current_index:
            self.clear_current()

    def clear_current(self) -> None:
        self.path = Path()
        self.shapes = []
        self.description = ""

    def set_description(self, text: Optional[str]) -> None:
        self.description = (text or "").strip()

    def get(self, index: int) -> ProgramSlot:
        """Return a copy of slot ``index``, reflecting unsaved edits of the active one."""

        self.validate_index(index)
        if index == self.current_index:
            return self._working_copy(index)
        slot = self.slots.get(index)
        return slot.clone() if slot is not None else ProgramSlot(index=index)

    def exportable_slots(self) -> Iterator[ProgramSlot]:
        self.save_current()
        for index in sorted(self.slots):
            slot = self.slots[index]
            if not slot.is_empty:
                yield slot.clone()

    def summary(self) -> List[Dict[str, object]]:
        self.save_current()
        return [
            {
                "index": index,
                "points": len(slot.path),
                "shapes": len(slot.shapes),
                "description": slot.description,
                "active": index == self.current_index,
            }
            for index, slot in sorted(self.slots.items())
            if not slot.is_empty or index == self.current_index
        ]

    # ------------------------------------------------------------------
    def snapshot(self) -> Dict[int, ProgramSlot]:
        self.save_current()
        return {index: slot.clone() for index, slot in self.slots.items()}

    def restore(self, slots: Dict[int, ProgramSlot], current_index: int) -> None:
        """Replace every slot; callers validate the incoming data first."""

        self.slots = {index: slot.clone() for index, slot in slots.items()}
        self.current_index = current_index
        self._load(current_index)


__all__ = ["ProgramSlot", "ProgramStore"]
