# Copyright 2025 AlQuraishi Laboratory
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Sequence name to slot resolution for alignments under construction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from openmsa.core.data.primitives.sequence.alignment import Alignment


class SlotGuess(Enum):
    """Which slot to try before searching for a name.

    NONE: no guess.
    LAST: the last resolved slot; annotation lines that follow their own
        sequence line.
    NEXT: the slot after the last resolved one; sequence lines and per-sequence
        header annotation, which come in slot order.
    """

    NONE = "none"
    LAST = "last"
    NEXT = "next"


class NameIndex(ABC):
    """Lookup of slots by sequence name."""

    @abstractmethod
    def lookup(self, name: str) -> int | None:
        """Returns the slot holding ``name``, or None if it is not stored."""

    @abstractmethod
    def store(self, name: str, slot: int) -> None:
        """Records that ``name`` lives in ``slot``."""

    @abstractmethod
    def __len__(self) -> int: ...


class HashNameIndex(NameIndex):
    """Dict-backed index, O(1) lookups."""

    def __init__(self):
        self._slots: dict[str, int] = {}

    def lookup(self, name: str) -> int | None:
        return self._slots.get(name)

    def store(self, name: str, slot: int) -> None:
        self._slots[name] = slot

    def __len__(self) -> int:
        return len(self._slots)


class LinearNameIndex(NameIndex):
    """Brute force index scanning names in slot order."""

    def __init__(self):
        self._names: list[str] = []

    def lookup(self, name: str) -> int | None:
        for slot, stored in enumerate(self._names):
            if stored == name:
                return slot
        return None

    def store(self, name: str, slot: int) -> None:
        if slot != len(self._names):
            raise ValueError(
                f"Slots must be stored in order: expected {len(self._names)}, "
                f"got {slot}."
            )
        self._names.append(name)

    def __len__(self) -> int:
        return len(self._names)


def create_name_index(keyhash: bool = True) -> NameIndex:
    return HashNameIndex() if keyhash else LinearNameIndex()


def _guessed_slot(msa: Alignment, guess: SlotGuess | int) -> int:
    if isinstance(guess, SlotGuess):
        if guess is SlotGuess.LAST:
            return msa.lastidx
        elif guess is SlotGuess.NEXT:
            return msa.lastidx + 1
        return -1
    return guess


def resolve_seqidx(
    msa: Alignment, name: str, guess: SlotGuess | int = SlotGuess.NONE
) -> int:
    """Finds the slot of sequence ``name`` in ``msa``, adding it if it is new.

    If the guessed slot already holds ``name`` it is returned without touching any
    state. Otherwise the name is looked up in the alignment's name index. A name
    that isn't found is stored in slot ``msa.nseq``, expanding the alignment if it
    is full.

    Args:
        msa (Alignment):
            Alignment under construction.
        name (str):
            Sequence name.
        guess (SlotGuess | int):
            Guess strategy, or an explicit slot to try first.

    Returns:
        int:
            The slot of the sequence.

    Raises:
        MsaNotGrowableError:
            If the name is new and the alignment is full and can't grow.
    """
    slot = _guessed_slot(msa, guess)
    if 0 <= slot < msa.nseq and msa.sqname[slot] == name:
        return slot

    slot = msa.index.lookup(name)
    if slot is not None:
        return slot

    return msa.add_sequence(name)
