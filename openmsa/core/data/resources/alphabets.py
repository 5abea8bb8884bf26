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

"""Residue alphabets used to digitize aligned sequences."""

from __future__ import annotations

from enum import IntEnum

import numpy as np


class AlphabetType(IntEnum):
    AMINO = 0
    DNA = 1
    RNA = 2


# Symbol orderings. The first K symbols are canonical residues, followed by the
# gap symbol, the degenerate symbols, the "any" residue, "*" (nonresidue) and
# "~" (missing data).
AMINO_SYMBOLS = "ACDEFGHIKLMNPQRSTVWY-BJZOUX*~"
DNA_SYMBOLS = "ACGT-RYMKSWHBVDN*~"
RNA_SYMBOLS = "ACGU-RYMKSWHBVDN*~"

# Extra input characters accepted on top of the symbols themselves
GAP_SYNONYMS = "._"
DNA_SYNONYMS = {"U": "T", "X": "N"}
RNA_SYNONYMS = {"T": "U", "X": "N"}

ALPHABET_TABLES = {
    AlphabetType.AMINO: (AMINO_SYMBOLS, 20, {}),
    AlphabetType.DNA: (DNA_SYMBOLS, 4, DNA_SYNONYMS),
    AlphabetType.RNA: (RNA_SYMBOLS, 4, RNA_SYNONYMS),
}

# Code used in the input map for characters that are not part of the alphabet
ILLEGAL_CODE = 255


class Alphabet:
    """A digitization table for one residue alphabet.

    Digital codes are indices into ``symbols``. Input is case-insensitive, and
    the gap synonyms "." and "_" both map onto the gap code.

    Attributes:
        type (AlphabetType):
            Which alphabet this is.
        symbols (str):
            All symbols in code order.
        K (int):
            Number of canonical residues. The gap code equals K.
        Kp (int):
            Total number of symbols.
    """

    def __init__(self, alphabet_type: AlphabetType):
        symbols, k, synonyms = ALPHABET_TABLES[alphabet_type]
        self.type = alphabet_type
        self.symbols = symbols
        self.K = k
        self.Kp = len(symbols)

        inmap = np.full(256, ILLEGAL_CODE, dtype=np.uint8)
        for code, sym in enumerate(symbols):
            inmap[ord(sym)] = code
            inmap[ord(sym.lower())] = code
        for syn in GAP_SYNONYMS:
            inmap[ord(syn)] = self.gap_code
        for syn, target in synonyms.items():
            inmap[ord(syn)] = inmap[ord(target)]
            inmap[ord(syn.lower())] = inmap[ord(target)]
        self._inmap = inmap
        self._outmap = np.array(list(symbols), dtype="<U1")

    @classmethod
    def create(cls, alphabet_type: AlphabetType | str) -> Alphabet:
        if isinstance(alphabet_type, str):
            alphabet_type = AlphabetType[alphabet_type.upper()]
        return cls(alphabet_type)

    @property
    def gap_code(self) -> int:
        return self.K

    def __repr__(self) -> str:
        return f"Alphabet({self.type.name})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Alphabet) and other.type == self.type

    def __hash__(self) -> int:
        return hash(self.type)

    def invalid_chars(self, text: str) -> str:
        """Returns the distinct characters of ``text`` that can't be digitized, in
        order of first appearance."""
        bad = []
        for c in text:
            if (ord(c) > 255 or self._inmap[ord(c)] == ILLEGAL_CODE) and c not in bad:
                bad.append(c)
        return "".join(bad)

    def digitize(self, text: str) -> np.ndarray:
        """Converts residue text into an array of digital codes.

        Args:
            text (str):
                Aligned residue text.

        Returns:
            np.ndarray:
                uint8 array of the same length as ``text``.

        Raises:
            ValueError:
                If ``text`` contains characters outside the alphabet. The message
                lists the offending characters.
        """
        try:
            raw = np.frombuffer(text.encode("latin-1"), dtype=np.uint8)
        except UnicodeEncodeError:
            raw = None
        if raw is None:
            raise ValueError(f"invalid residue(s) {self.invalid_chars(text)!r}")

        codes = self._inmap[raw]
        if (codes == ILLEGAL_CODE).any():
            raise ValueError(f"invalid residue(s) {self.invalid_chars(text)!r}")
        return codes

    def textize(self, codes: np.ndarray) -> str:
        """Converts digital codes back into (upper case) residue text."""
        return "".join(self._outmap[codes])
