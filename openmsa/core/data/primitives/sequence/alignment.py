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

"""This module contains the growable alignment record filled in by the readers."""

from __future__ import annotations

import dataclasses
import logging

import numpy as np
import pandas as pd

from openmsa.core.data.io.sequence.errors import (
    InvalidResidueError,
    MsaNotGrowableError,
)
from openmsa.core.data.primitives.sequence.name_index import (
    NameIndex,
    create_name_index,
)
from openmsa.core.data.resources.alphabets import Alphabet

logger = logging.getLogger(__name__)

# Reserved #=GF cutoff tags, each holding up to two scores
CUTOFF_TAGS = ("GA", "NC", "TC")

# Per-sequence-per-column annotations with dedicated storage
SEQ_ANNOTATION_TAGS = ("SS", "SA", "PP")


@dataclasses.dataclass(eq=False)
class Alignment:
    """Class representing a multiple sequence alignment being parsed or parsed.

    Per-sequence tables are indexed by slot and are sized to ``capacity``; only
    slots ``0..nseq-1`` are in use. The tables for per-sequence structure,
    accessibility and posterior probability annotation are None until the first
    annotation of that kind is seen.

    While parsing, ``sqlen`` (and ``sslen``, ``salen``, ``pplen``) hold running
    lengths. ``verify_alignment`` sets ``alen`` and drops the running lengths.

    Attributes:
        capacity (int):
            Number of allocated slots.
        abc (Alphabet | None):
            Alphabet of a digital alignment, None for text mode.
        growable (bool):
            Whether new sequence names may be added beyond ``capacity``.
        keyhash (bool):
            Whether names are indexed by hashing (True) or by linear scan.
        nseq (int):
            Number of sequences.
        alen (int | None):
            Alignment length, None until the alignment is verified.
        name, acc, desc, author (str | None):
            Record-wide ID, accession, description and author.
        sqname (list[str | None]):
            Sequence names.
        aseq (list[str | None] | None):
            Aligned text sequences; None in digital mode.
        ax (list[np.ndarray | None] | None):
            Digitized aligned sequences; None in text mode.
        wgt (list[float | None]):
            Sequence weights, None while unset.
        ss_cons, sa_cons, pp_cons, rf (str | None):
            Per-column consensus annotation.
        gf (dict[str, str]):
            Unparsed free-text record annotation.
        gs (dict[str, dict[int, str]]):
            Unparsed per-sequence annotation, by tag then slot.
        gc (dict[str, str]):
            Unparsed per-column annotation.
        gr (dict[str, dict[int, str]]):
            Unparsed per-sequence-per-column annotation, by tag then slot.
        comment (list[str]):
            Comment lines, verbatim.
        cutoffs (dict[str, list[float | None]]):
            Score cutoff pairs keyed by GA, NC and TC.
        lastidx (int):
            Last slot resolved by name, -1 before any.
        has_weights (bool):
            Whether any sequence weight was given.
    """

    capacity: int = 16
    abc: Alphabet | None = None
    growable: bool = True
    keyhash: bool = True

    nseq: int = dataclasses.field(default=0, init=False)
    alen: int | None = dataclasses.field(default=None, init=False)
    name: str | None = dataclasses.field(default=None, init=False)
    acc: str | None = dataclasses.field(default=None, init=False)
    desc: str | None = dataclasses.field(default=None, init=False)
    author: str | None = dataclasses.field(default=None, init=False)

    sqname: list[str | None] = dataclasses.field(init=False, repr=False)
    aseq: list[str | None] | None = dataclasses.field(
        default=None, init=False, repr=False
    )
    ax: list[np.ndarray | None] | None = dataclasses.field(
        default=None, init=False, repr=False
    )
    sqlen: list[int] | None = dataclasses.field(init=False, repr=False)
    sqacc: list[str | None] | None = dataclasses.field(
        default=None, init=False, repr=False
    )
    sqdesc: list[str | None] | None = dataclasses.field(
        default=None, init=False, repr=False
    )
    wgt: list[float | None] = dataclasses.field(init=False, repr=False)

    ss: list[str | None] | None = dataclasses.field(
        default=None, init=False, repr=False
    )
    sa: list[str | None] | None = dataclasses.field(
        default=None, init=False, repr=False
    )
    pp: list[str | None] | None = dataclasses.field(
        default=None, init=False, repr=False
    )
    sslen: list[int] | None = dataclasses.field(default=None, init=False, repr=False)
    salen: list[int] | None = dataclasses.field(default=None, init=False, repr=False)
    pplen: list[int] | None = dataclasses.field(default=None, init=False, repr=False)

    ss_cons: str | None = dataclasses.field(default=None, init=False, repr=False)
    sa_cons: str | None = dataclasses.field(default=None, init=False, repr=False)
    pp_cons: str | None = dataclasses.field(default=None, init=False, repr=False)
    rf: str | None = dataclasses.field(default=None, init=False, repr=False)

    gf: dict[str, str] = dataclasses.field(
        default_factory=dict, init=False, repr=False
    )
    gs: dict[str, dict[int, str]] = dataclasses.field(
        default_factory=dict, init=False, repr=False
    )
    gc: dict[str, str] = dataclasses.field(
        default_factory=dict, init=False, repr=False
    )
    gr: dict[str, dict[int, str]] = dataclasses.field(
        default_factory=dict, init=False, repr=False
    )
    comment: list[str] = dataclasses.field(
        default_factory=list, init=False, repr=False
    )
    cutoffs: dict[str, list[float | None]] = dataclasses.field(
        init=False, repr=False
    )

    lastidx: int = dataclasses.field(default=-1, init=False, repr=False)
    has_weights: bool = dataclasses.field(default=False, init=False, repr=False)
    index: NameIndex = dataclasses.field(init=False, repr=False)

    def __post_init__(self):
        if self.capacity < 0:
            raise ValueError(f"Capacity must be non-negative, got {self.capacity}.")
        self.sqname = [None] * self.capacity
        if self.abc is None:
            self.aseq = [None] * self.capacity
        else:
            self.ax = [None] * self.capacity
        self.sqlen = [0] * self.capacity
        self.wgt = [None] * self.capacity
        self.cutoffs = {tag: [None, None] for tag in CUTOFF_TAGS}
        self.index = create_name_index(self.keyhash)

    def __len__(self):
        return self.nseq

    @property
    def digital(self) -> bool:
        return self.abc is not None

    @property
    def is_finalized(self) -> bool:
        return self.alen is not None and self.sqlen is None

    def expand(self) -> None:
        """Doubles the number of allocated slots.

        Raises:
            MsaNotGrowableError:
                If the alignment was created with a fixed size.
        """
        if not self.growable:
            raise MsaNotGrowableError(
                f"Can't add sequences to an alignment of fixed size {self.capacity}."
            )
        new_capacity = max(1, 2 * self.capacity)
        extra = new_capacity - self.capacity

        self.sqname.extend([None] * extra)
        self.wgt.extend([None] * extra)
        if self.sqlen is not None:
            self.sqlen.extend([0] * extra)
        for attr in ("aseq", "ax", "sqacc", "sqdesc", "ss", "sa", "pp"):
            table = getattr(self, attr)
            if table is not None:
                table.extend([None] * extra)
        for attr in ("sslen", "salen", "pplen"):
            table = getattr(self, attr)
            if table is not None:
                table.extend([0] * extra)

        logger.debug(
            f"Expanded alignment from {self.capacity} to {new_capacity} slots."
        )
        self.capacity = new_capacity

    def add_sequence(self, name: str) -> int:
        """Stores a new sequence name in the next free slot and returns the slot.

        Uniqueness is not checked here; callers go through ``resolve_seqidx``.
        """
        if self.nseq >= self.capacity:
            self.expand()
        slot = self.nseq
        self.sqname[slot] = name
        self.index.store(name, slot)
        self.nseq += 1
        return slot

    # Sequence data
    def append_residues(self, idx: int, text: str) -> None:
        """Appends aligned residue text to sequence ``idx``, digitizing in digital
        mode.

        Raises:
            InvalidResidueError:
                If ``text`` holds characters outside the alphabet.
        """
        if self.abc is None:
            current = self.aseq[idx]
            self.aseq[idx] = text if current is None else current + text
        else:
            try:
                codes = self.abc.digitize(text)
            except ValueError:
                raise InvalidResidueError(
                    self.sqname[idx], self.abc.invalid_chars(text)
                ) from None
            current = self.ax[idx]
            if current is not None:
                codes = np.concatenate([current, codes])
            self.ax[idx] = codes
        self.sqlen[idx] += len(text)

    def has_sequence(self, idx: int) -> bool:
        table = self.aseq if self.abc is None else self.ax
        return table is not None and table[idx] is not None

    def set_seq_accession(self, idx: int, accession: str) -> None:
        if self.sqacc is None:
            self.sqacc = [None] * self.capacity
        self.sqacc[idx] = accession

    def set_seq_description(self, idx: int, description: str) -> None:
        if self.sqdesc is None:
            self.sqdesc = [None] * self.capacity
        self.sqdesc[idx] = description

    def set_weight(self, idx: int, weight: float) -> None:
        self.wgt[idx] = weight
        self.has_weights = True

    # Annotation
    def add_gf(self, tag: str, text: str) -> None:
        """Adds unparsed free-text annotation. Repeated tags are joined by
        newlines."""
        if tag in self.gf:
            self.gf[tag] += "\n" + text
        else:
            self.gf[tag] = text

    def add_gs(self, tag: str, idx: int, text: str) -> None:
        """Adds unparsed per-sequence annotation. Repeats for one sequence are
        joined by newlines."""
        by_seq = self.gs.setdefault(tag, {})
        if idx in by_seq:
            by_seq[idx] += "\n" + text
        else:
            by_seq[idx] = text

    def append_gc(self, tag: str, text: str) -> None:
        self.gc[tag] = self.gc.get(tag, "") + text

    def append_gr(self, tag: str, idx: int, text: str) -> None:
        by_seq = self.gr.setdefault(tag, {})
        by_seq[idx] = by_seq.get(idx, "") + text

    def add_comment(self, text: str) -> None:
        self.comment.append(text)

    def set_cutoff(self, tag: str, first: float, second: float | None = None) -> None:
        self.cutoffs[tag] = [first, second]

    def has_cutoff(self, tag: str, which: int = 0) -> bool:
        return self.cutoffs[tag][which] is not None

    def _allocate_seq_annotation(self, tag: str) -> None:
        attr = tag.lower()
        if getattr(self, attr) is None:
            setattr(self, attr, [None] * self.capacity)
            setattr(self, f"{attr}len", [0] * self.capacity)

    def append_seq_annotation(self, tag: str, idx: int, text: str) -> None:
        """Appends per-column annotation (SS, SA or PP) of sequence ``idx``.

        The table for ``tag`` is allocated on its first use.
        """
        if tag not in SEQ_ANNOTATION_TAGS:
            raise ValueError(f"Unknown per-sequence annotation {tag}.")
        self._allocate_seq_annotation(tag)
        attr = tag.lower()
        table = getattr(self, attr)
        lengths = getattr(self, f"{attr}len")
        table[idx] = text if table[idx] is None else table[idx] + text
        if lengths is not None:
            lengths[idx] += len(text)

    # Mode conversion
    def digitize(self, abc: Alphabet) -> None:
        """Converts a text alignment to digital mode in place.

        Raises:
            InvalidResidueError:
                On the first sequence that holds residues outside ``abc``. The
                alignment is left in text mode.
        """
        if self.abc is not None:
            raise ValueError("Alignment is already digital.")

        ax = [None] * self.capacity
        for idx in range(self.nseq):
            if self.aseq[idx] is None:
                continue
            try:
                ax[idx] = abc.digitize(self.aseq[idx])
            except ValueError:
                raise InvalidResidueError(
                    self.sqname[idx], abc.invalid_chars(self.aseq[idx])
                ) from None

        self.ax = ax
        self.aseq = None
        self.abc = abc

    def textize(self) -> None:
        """Converts a digital alignment to text mode in place."""
        if self.abc is None:
            raise ValueError("Alignment is already in text mode.")

        self.aseq = [
            self.abc.textize(codes) if codes is not None else None for codes in self.ax
        ]
        self.ax = None
        self.abc = None

    # Views
    def sequences(self) -> list[str]:
        """Returns the aligned residue text of all sequences."""
        if self.abc is None:
            return [self.aseq[idx] or "" for idx in range(self.nseq)]
        return [
            self.abc.textize(self.ax[idx]) if self.ax[idx] is not None else ""
            for idx in range(self.nseq)
        ]

    def as_matrix(self) -> np.ndarray:
        """Returns the alignment as a 2D num.seq.-by-aln.len. character array."""
        sequences = self.sequences()
        if self.alen is not None:
            alignment_length = self.alen
        else:
            alignment_length = len(sequences[0]) if sequences else 0
        msa_array = np.empty((self.nseq, alignment_length), dtype="<U1")
        for i, sequence in enumerate(sequences):
            msa_array[i] = list(sequence)
        return msa_array

    @property
    def metadata(self) -> pd.DataFrame:
        """Per-sequence names, accessions, descriptions and weights.

        Text columns have object dtype so that absent values stay None.
        """
        accessions = self.sqacc[: self.nseq] if self.sqacc else [None] * self.nseq
        descriptions = self.sqdesc[: self.nseq] if self.sqdesc else [None] * self.nseq
        return pd.DataFrame(
            {
                "name": pd.Series(self.sqname[: self.nseq], dtype=object),
                "accession": pd.Series(accessions, dtype=object),
                "description": pd.Series(descriptions, dtype=object),
                "weight": pd.Series(self.wgt[: self.nseq], dtype=object),
            }
        )
