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

"""This module contains the reader for Stockholm (Pfam/Rfam) format alignments.

A Stockholm record looks like this:

    # STOCKHOLM 1.0
    #=GF ID    example
    #=GS seq1  WT  0.5
    seq1       ACDE-FGH
    #=GR seq1  SS  ....HHHH
    seq2       ACDEGFGH
    #=GC SS_cons ....HHHH
    //

Sequence and annotation lines may be interleaved over several blocks; the text
given for the same sequence or tag is concatenated in file order.
"""

import logging

from openmsa.core.data.io.sequence.errors import (
    InvalidResidueError,
    MsaFormatError,
)
from openmsa.core.data.io.sequence.line_source import LineSource, is_blank_line
from openmsa.core.data.primitives.sequence.alignment import (
    CUTOFF_TAGS,
    SEQ_ANNOTATION_TAGS,
    Alignment,
)
from openmsa.core.data.primitives.sequence.name_index import (
    SlotGuess,
    resolve_seqidx,
)
from openmsa.core.data.primitives.sequence.verify import verify_alignment
from openmsa.core.data.resources.alphabets import Alphabet

logger = logging.getLogger(__name__)

STOCKHOLM_HEADER = "# STOCKHOLM 1."
STOCKHOLM_TERMINATOR = "//"

# #=GC tags stored as consensus strings, mapped to Alignment attributes
CONSENSUS_TAGS = {
    "SS_cons": "ss_cons",
    "SA_cons": "sa_cons",
    "PP_cons": "pp_cons",
    "RF": "rf",
}

# #=GF tags stored as record-wide scalar fields
GF_FIELD_TAGS = {
    "ID": "name",
    "AC": "acc",
    "DE": "desc",
    "AU": "author",
}


def _parse_cutoffs(msa: Alignment, tag: str, text: str) -> None:
    values = text.split()
    if not values:
        raise MsaFormatError(f"no score given for {tag} cutoff")
    try:
        scores = [float(v) for v in values[:2]]
    except ValueError:
        raise MsaFormatError(f"{tag} cutoff {text!r} is not numeric") from None
    msa.set_cutoff(tag, *scores)


def parse_gf(msa: Alignment, line: str) -> None:
    """Parses a #=GF <tag> <text> line. The text may be empty."""
    fields = line.split(None, 2)
    if len(fields) < 2:
        raise MsaFormatError("missing tag")
    tag = fields[1]
    text = fields[2] if len(fields) == 3 else ""

    if tag in GF_FIELD_TAGS:
        setattr(msa, GF_FIELD_TAGS[tag], text)
    elif tag in CUTOFF_TAGS:
        _parse_cutoffs(msa, tag, text)
    else:
        msa.add_gf(tag, text)


def parse_gs(msa: Alignment, line: str) -> None:
    """Parses a #=GS <seqname> <tag> <text> line."""
    fields = line.split(None, 3)
    if len(fields) < 4:
        raise MsaFormatError("expected a sequence name, a tag and text")
    _, seqname, tag, text = fields

    # GS lines usually come in sequence order
    seqidx = resolve_seqidx(msa, seqname, SlotGuess.NEXT)
    msa.lastidx = seqidx

    if tag == "WT":
        try:
            weight = float(text.split()[0])
        except ValueError:
            raise MsaFormatError(f"weight {text!r} is not numeric") from None
        msa.set_weight(seqidx, weight)
    elif tag == "AC":
        msa.set_seq_accession(seqidx, text)
    elif tag == "DE":
        msa.set_seq_description(seqidx, text)
    else:
        msa.add_gs(tag, seqidx, text)


def parse_gc(msa: Alignment, line: str) -> None:
    """Parses a #=GC <tag> <aligned text> line."""
    fields = line.split()
    if len(fields) < 3:
        raise MsaFormatError("expected a tag and aligned text")
    tag, text = fields[1], fields[2]

    if tag in CONSENSUS_TAGS:
        attr = CONSENSUS_TAGS[tag]
        current = getattr(msa, attr)
        setattr(msa, attr, text if current is None else current + text)
    else:
        msa.append_gc(tag, text)


def parse_gr(msa: Alignment, line: str) -> None:
    """Parses a #=GR <seqname> <tag> <aligned text> line."""
    fields = line.split()
    if len(fields) < 4:
        raise MsaFormatError("expected a sequence name, a tag and aligned text")
    seqname, tag, text = fields[1], fields[2], fields[3]

    # GR lines follow the sequence they annotate
    seqidx = resolve_seqidx(msa, seqname, SlotGuess.LAST)
    msa.lastidx = seqidx

    if tag in SEQ_ANNOTATION_TAGS:
        msa.append_seq_annotation(tag, seqidx, text)
    else:
        msa.append_gr(tag, seqidx, text)


def parse_comment(msa: Alignment, line: str) -> None:
    """Stores a comment line verbatim, without its leading #."""
    msa.add_comment(line[1:])


def parse_sequence(msa: Alignment, line: str) -> None:
    """Parses a <seqname> <aligned text> line."""
    fields = line.split()
    if len(fields) < 2:
        raise MsaFormatError("expected a sequence name and aligned text")
    seqname, text = fields[0], fields[1]
    if len(fields) > 2:
        logger.warning(f"Ignoring text after the aligned residues of {seqname}.")

    # Sequence lines usually come in the same order in every block
    seqidx = resolve_seqidx(msa, seqname, SlotGuess.NEXT)
    msa.lastidx = seqidx
    msa.append_residues(seqidx, text)


MARKUP_PARSERS = {
    "#=GF": parse_gf,
    "#=GS": parse_gs,
    "#=GC": parse_gc,
    "#=GR": parse_gr,
}


def _read_header(source: LineSource) -> bool:
    """Skips leading blank lines and checks the magic header.

    Returns False if the input ends before any non-blank line.
    """
    line = source.getline()
    while line is not None and is_blank_line(line):
        line = source.getline()
    if line is None:
        return False

    if not line.startswith(STOCKHOLM_HEADER):
        raise MsaFormatError('missing "# STOCKHOLM" header', source.linenumber)
    return True


def read_stockholm(
    source: LineSource,
    abc: Alphabet | None = None,
    keyhash: bool = True,
    initial_capacity: int = 16,
) -> Alignment | None:
    """Reads the next Stockholm record from a line source.

    Args:
        source (LineSource):
            Input positioned before the record (or before blank lines preceding
            it).
        abc (Alphabet | None):
            If given, sequences are digitized in this alphabet.
        keyhash (bool):
            Whether to index sequence names by hashing instead of linear search.
        initial_capacity (int):
            Number of sequence slots allocated up front. The record grows as
            needed.

    Returns:
        Alignment | None:
            The verified alignment, or None if the input holds no further record.

    Raises:
        MsaFormatError:
            If the record is malformed. The message holds the line number.
        InvalidResidueError:
            If a sequence holds residues outside ``abc``.
    """
    if not _read_header(source):
        return None

    msa = Alignment(capacity=initial_capacity, abc=abc, keyhash=keyhash)

    terminated = False
    while True:
        line = source.getline()
        if line is None:
            break
        s = line.lstrip(" \t")
        linenumber = source.linenumber

        if s.startswith(STOCKHOLM_TERMINATOR):
            terminated = True
            break
        elif is_blank_line(s):
            continue
        elif s.startswith("#"):
            parser = MARKUP_PARSERS.get(s[:4], parse_comment)
            kind = s[:4] if parser is not parse_comment else "comment"
        else:
            parser = parse_sequence
            kind = "sequence"

        try:
            parser(msa, s)
        except InvalidResidueError as e:
            raise e.at_line(linenumber) from None
        except MsaFormatError as e:
            raise MsaFormatError(f"bad {kind} line ({e.message})", linenumber) from e

    if not terminated:
        raise MsaFormatError("didn't find // at end of alignment", source.linenumber)

    try:
        verify_alignment(msa)
    except MsaFormatError as e:
        raise e.at_line(source.linenumber) from e

    logger.debug(
        f"Read Stockholm alignment {msa.name!r} with {msa.nseq} sequences of length "
        f"{msa.alen} (line {source.linenumber})"
    )
    return msa
