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

"""This module contains the reader for SELEX format alignments.

SELEX alignments come in blocks separated by blank lines. Each block holds the
same lines in the same order: one line per sequence, optionally followed by
#=SS and #=SA lines annotating that sequence, plus at most one #=RF and one #=CS
line. Residues are placed by column, and a space may be used as a gap.

    #=RF  xxxxx xxx
    seq1  ACDEF GHI
    #=SS  ..HHH HH.
    seq2  ACD-F  HI
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from openmsa.core.data.io.sequence.errors import (
    InternalInconsistencyError,
    InvalidResidueError,
    MsaFormatError,
)
from openmsa.core.data.io.sequence.line_source import LineSource, is_blank_line
from openmsa.core.data.primitives.sequence.alignment import Alignment
from openmsa.core.data.primitives.sequence.verify import verify_alignment
from openmsa.core.data.resources.alphabets import Alphabet

logger = logging.getLogger(__name__)

INITIAL_BLOCK_CAPACITY = 16

# First whitespace-delimited token of a line and the whitespace following it
_LEADING_TOKEN = re.compile(r"\s*(\S+)\s*")


class LineType(Enum):
    SEQUENCE = "seq"
    REFERENCE = "#=RF"
    CONSENSUS_STRUCTURE = "#=CS"
    STRUCTURE = "#=SS"
    ACCESSIBILITY = "#=SA"


_MARKUP_LINE_TYPES = {
    "#=RF": LineType.REFERENCE,
    "#=CS": LineType.CONSENSUS_STRUCTURE,
    "#=SS": LineType.STRUCTURE,
    "#=SA": LineType.ACCESSIBILITY,
}


def _classify(line: str) -> LineType:
    return _MARKUP_LINE_TYPES.get(line[:4], LineType.SEQUENCE)


def _is_comment(line: str) -> bool:
    return line.startswith("#") and not line.startswith("#=")


def _leading_token(line: str) -> tuple[str, int | None]:
    """Returns the first token of ``line`` and the column of the first character
    after it, or None if the rest of the line is blank."""
    match = _LEADING_TOKEN.match(line)
    if match is None:
        raise InternalInconsistencyError(f"block line without any token: {line!r}")
    start = match.end()
    return match.group(1), (start if start < len(line) else None)


class SelexBlockBuffer:
    """Holds the lines of one alignment block.

    The buffer is reused from block to block and doubles its capacity whenever a
    block holds more lines than fit.

    Attributes:
        lines (list[str | None]):
            Lines of the current block, verbatim.
        llen (list[int]):
            Line lengths.
        lpos (list[int | None]):
            Column of the first data character, None if a line has no data.
            Filled in by the block parsers.
        rpos (list[int]):
            Column of the last non-whitespace character.
        lineno (list[int]):
            Input line numbers.
        nlines (int):
            Number of lines in the current block.
    """

    def __init__(self, capacity: int = INITIAL_BLOCK_CAPACITY):
        self.capacity = 0
        self.lines: list[str | None] = []
        self.llen: list[int] = []
        self.lpos: list[int | None] = []
        self.rpos: list[int] = []
        self.lineno: list[int] = []
        self.nlines = 0
        self._grow(capacity)

    def _grow(self, new_capacity: int) -> None:
        extra = new_capacity - self.capacity
        self.lines.extend([None] * extra)
        self.llen.extend([0] * extra)
        self.lpos.extend([None] * extra)
        self.rpos.extend([0] * extra)
        self.lineno.extend([0] * extra)
        self.capacity = new_capacity

    def store(self, line: str, lineno: int) -> None:
        if self.nlines == self.capacity:
            self._grow(2 * self.capacity)
        i = self.nlines
        self.lines[i] = line
        self.llen[i] = len(line)
        self.lpos[i] = None
        self.rpos[i] = len(line.rstrip()) - 1
        self.lineno[i] = lineno
        self.nlines += 1

    def read_block(self, source: LineSource, expected_nlines: int | None) -> bool:
        """Reads the next block of lines from ``source``.

        Args:
            source (LineSource):
                Input, positioned before the block.
            expected_nlines (int | None):
                Number of lines every block must have, None for the first block.

        Returns:
            bool:
                False if the input ended before another block.

        Raises:
            MsaFormatError:
                If the block has a different number of lines than expected.
        """
        self.nlines = 0

        line = source.getline()
        while line is not None and (is_blank_line(line) or _is_comment(line)):
            line = source.getline()
        if line is None:
            return False

        while True:
            self.store(line, source.linenumber)
            line = source.getline()
            while line is not None and _is_comment(line):
                line = source.getline()
            if line is None or is_blank_line(line):
                break

        if expected_nlines is not None and self.nlines != expected_nlines:
            raise MsaFormatError(
                f"expected {expected_nlines} lines in block, saw {self.nlines}",
                source.linenumber,
            )
        return True


def parse_first_block(
    block: SelexBlockBuffer, keyhash: bool = True
) -> tuple[Alignment, list[LineType]]:
    """Determines the line types of the first block and creates the alignment.

    The number of sequence lines fixes the number of sequences for the rest of
    the file. Sequence names are stored and ``block.lpos`` is filled in.

    Returns:
        tuple[Alignment, list[LineType]]:
            The empty, fixed-size alignment and the line types of the block.
    """
    ltypes = []
    nseq = nrf = ncs = nss = nsa = 0
    for li in range(block.nlines):
        ltype = _classify(block.lines[li])
        ltypes.append(ltype)
        lineno = block.lineno[li]

        if ltype is LineType.REFERENCE:
            nrf += 1
        elif ltype is LineType.CONSENSUS_STRUCTURE:
            ncs += 1
        elif ltype is LineType.STRUCTURE:
            nss += 1
        elif ltype is LineType.ACCESSIBILITY:
            nsa += 1
        else:
            nseq += 1
            nss = nsa = 0

        if nss > 0 and nseq == 0:
            raise MsaFormatError("#=SS must follow a sequence", lineno)
        if nsa > 0 and nseq == 0:
            raise MsaFormatError("#=SA must follow a sequence", lineno)
        if nrf > 1:
            raise MsaFormatError("too many #=RF lines for block", lineno)
        if ncs > 1:
            raise MsaFormatError("too many #=CS lines for block", lineno)
        if nss > 1:
            raise MsaFormatError("too many #=SS lines for seq", lineno)
        if nsa > 1:
            raise MsaFormatError("too many #=SA lines for seq", lineno)

    msa = Alignment(capacity=nseq, growable=False, keyhash=keyhash)
    msa.alen = 0
    for li in range(block.nlines):
        token, block.lpos[li] = _leading_token(block.lines[li])
        if ltypes[li] is LineType.SEQUENCE:
            if msa.index.lookup(token) is not None:
                raise MsaFormatError(
                    f"duplicate sequence name {token}", block.lineno[li]
                )
            msa.add_sequence(token)

    return msa, ltypes


def parse_other_block(
    block: SelexBlockBuffer, msa: Alignment, ltypes: list[LineType]
) -> None:
    """Checks that a later block repeats the line types and sequence names of the
    first block, and fills in ``block.lpos``."""
    for li in range(block.nlines):
        ltype = _classify(block.lines[li])
        if ltype is not ltypes[li]:
            label = "seq" if ltype is LineType.SEQUENCE else ltype.value
            raise MsaFormatError(
                f"{label} line isn't in expected order", block.lineno[li]
            )

    seqidx = 0
    for li in range(block.nlines):
        token, block.lpos[li] = _leading_token(block.lines[li])
        if ltypes[li] is LineType.SEQUENCE:
            if token != msa.sqname[seqidx]:
                raise MsaFormatError(
                    f"expected seq {msa.sqname[seqidx]}, saw {token}",
                    block.lineno[li],
                )
            seqidx += 1


def append_block(
    block: SelexBlockBuffer,
    msa: Alignment,
    ltypes: list[LineType],
    abc: Alphabet | None = None,
) -> int:
    """Appends the columns of a block to the rows of the alignment.

    Every line is padded with spaces on both sides to span from the leftmost to
    the rightmost data column of the block. Residues are kept as text; if ``abc``
    is given they are checked against it here, where the line is still known.

    Returns:
        int:
            Width of the block in alignment columns, 0 if no line has data.

    Raises:
        InvalidResidueError:
            If a sequence line holds residues outside ``abc``.
    """
    with_data = [li for li in range(block.nlines) if block.lpos[li] is not None]
    if not with_data:
        return 0
    leftmost = min(block.lpos[li] for li in with_data)
    rightmost = max(block.rpos[li] for li in with_data)
    width = rightmost - leftmost + 1

    seqidx = 0
    for li in range(block.nlines):
        lpos, rpos = block.lpos[li], block.rpos[li]
        if lpos is None:
            fragment = " " * width
        else:
            fragment = (
                " " * (lpos - leftmost)
                + block.lines[li][lpos : rpos + 1]
                + " " * (rightmost - rpos)
            )

        ltype = ltypes[li]
        if ltype is LineType.SEQUENCE:
            if abc is not None:
                # Spaces become gaps later on
                invalid = abc.invalid_chars(fragment.replace(" ", "."))
                if invalid:
                    raise InvalidResidueError(
                        msa.sqname[seqidx], invalid, block.lineno[li]
                    )
            msa.append_residues(seqidx, fragment)
            seqidx += 1
        elif ltype is LineType.REFERENCE:
            msa.rf = (msa.rf or "") + fragment
        elif ltype is LineType.CONSENSUS_STRUCTURE:
            msa.ss_cons = (msa.ss_cons or "") + fragment
        elif ltype is LineType.STRUCTURE:
            msa.append_seq_annotation("SS", seqidx - 1, fragment)
        elif ltype is LineType.ACCESSIBILITY:
            msa.append_seq_annotation("SA", seqidx - 1, fragment)

    msa.alen += width
    return width


def _space_to_dot(text: str | None) -> str | None:
    return text.replace(" ", ".") if text is not None else None


def _convert_space_gaps(msa: Alignment) -> None:
    msa.rf = _space_to_dot(msa.rf)
    msa.ss_cons = _space_to_dot(msa.ss_cons)
    for table in (msa.ss, msa.sa, msa.aseq):
        if table is None:
            continue
        for idx in range(msa.nseq):
            table[idx] = _space_to_dot(table[idx])


def read_selex(
    source: LineSource,
    abc: Alphabet | None = None,
    keyhash: bool = True,
) -> Alignment | None:
    """Reads a SELEX alignment from a line source.

    A SELEX file holds a single alignment; once it has been read further calls
    return None.

    Args:
        source (LineSource):
            Input positioned at the start of the alignment.
        abc (Alphabet | None):
            If given, the alignment is digitized in this alphabet.
        keyhash (bool):
            Whether to index sequence names by hashing instead of linear search.

    Returns:
        Alignment | None:
            The verified alignment, or None if the input holds no alignment data.

    Raises:
        MsaFormatError:
            If blocks are inconsistent with each other or malformed. The message
            holds the line number.
        InvalidResidueError:
            If a sequence holds residues outside ``abc``. The message holds the
            line with the first offending residue.
    """
    block = SelexBlockBuffer()
    msa = None
    ltypes = None
    nblocks = 0

    while block.read_block(source, len(ltypes) if ltypes is not None else None):
        nblocks += 1
        if nblocks == 1:
            msa, ltypes = parse_first_block(block, keyhash)
        else:
            parse_other_block(block, msa, ltypes)
        append_block(block, msa, ltypes, abc)

    if msa is None:
        return None

    # Spaces are allowed as gaps in SELEX only
    _convert_space_gaps(msa)

    try:
        if abc is not None:
            msa.digitize(abc)
        verify_alignment(msa)
    except MsaFormatError as e:
        raise e.at_line(source.linenumber) from e

    logger.debug(
        f"Read SELEX alignment with {msa.nseq} sequences of length {msa.alen} "
        f"in {nblocks} blocks"
    )
    return msa
