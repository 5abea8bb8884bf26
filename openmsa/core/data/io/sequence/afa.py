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

"""This module contains the reader for aligned FASTA (AFA) alignments."""

import logging

from openmsa.core.data.io.sequence.errors import (
    InvalidResidueError,
    MsaFormatError,
)
from openmsa.core.data.io.sequence.line_source import LineSource, is_blank_line
from openmsa.core.data.primitives.sequence.alignment import Alignment
from openmsa.core.data.primitives.sequence.verify import verify_alignment
from openmsa.core.data.resources.alphabets import Alphabet

logger = logging.getLogger(__name__)


def _check_length(msa: Alignment, seqidx: int, linenumber: int) -> None:
    """Checks that sequence ``seqidx`` is as long as the first sequence."""
    if msa.sqlen[seqidx] != msa.sqlen[0]:
        raise MsaFormatError(
            f"sequence {seqidx + 1} length ({msa.sqlen[seqidx]}) is not equal to the "
            f"expected length ({msa.sqlen[0]}) (the length of first seq in file)",
            linenumber,
        )


def read_afa(
    source: LineSource,
    abc: Alphabet | None = None,
    keyhash: bool = True,
    initial_capacity: int = 16,
) -> Alignment | None:
    """Reads an aligned FASTA alignment from a line source.

    Lines starting with ">" begin a new sequence; the first word is the name and
    the rest of the line the description. All other non-blank lines hold residues,
    possibly split by whitespace, which is discarded. Every sequence must be as
    long as the first one; this is checked as soon as a sequence is complete.

    Args:
        source (LineSource):
            Input positioned at the start of the alignment.
        abc (Alphabet | None):
            If given, sequences are digitized in this alphabet.
        keyhash (bool):
            Whether to index sequence names by hashing instead of linear search.
        initial_capacity (int):
            Number of sequence slots allocated up front. The record grows as
            needed.

    Returns:
        Alignment | None:
            The verified alignment, or None if the input holds no sequences.

    Raises:
        MsaFormatError:
            If the input is malformed or sequences differ in length.
        InvalidResidueError:
            If a sequence holds residues outside ``abc``.
    """
    msa = Alignment(capacity=initial_capacity, abc=abc, keyhash=keyhash)
    seqidx = -1

    while True:
        line = source.getline()
        if line is None:
            break
        s = line.lstrip(" \t")
        linenumber = source.linenumber

        if is_blank_line(s):
            continue

        if s.startswith(">"):
            # The sequence before this header is complete now
            if seqidx > 0:
                _check_length(msa, seqidx, linenumber)

            fields = s[1:].split(None, 1)
            if not fields:
                raise MsaFormatError(
                    f"problem reading name of sequence {msa.nseq + 1}", linenumber
                )
            if msa.index.lookup(fields[0]) is not None:
                raise MsaFormatError(
                    f"duplicate sequence name {fields[0]}", linenumber
                )
            seqidx = msa.add_sequence(fields[0])
            if len(fields) == 2 and fields[1].strip():
                msa.set_seq_description(seqidx, fields[1].strip())
        else:
            if seqidx < 0:
                raise MsaFormatError(
                    "first non-whitespace character is not a '>'", linenumber
                )
            try:
                for token in s.split():
                    msa.append_residues(seqidx, token)
            except InvalidResidueError as e:
                raise e.at_line(linenumber) from None

    if msa.nseq == 0:
        logger.debug("No sequences found in AFA input.")
        return None

    if seqidx > 0:
        _check_length(msa, seqidx, source.linenumber)

    try:
        verify_alignment(msa)
    except MsaFormatError as e:
        raise e.at_line(source.linenumber) from e

    logger.debug(
        f"Read AFA alignment with {msa.nseq} sequences of length {msa.alen}"
    )
    return msa
