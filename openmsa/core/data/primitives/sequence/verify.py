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

"""Consistency checks run on every alignment once a reader has finished it."""

import logging

from openmsa.core.data.io.sequence.errors import MsaFormatError
from openmsa.core.data.primitives.sequence.alignment import (
    SEQ_ANNOTATION_TAGS,
    Alignment,
)

logger = logging.getLogger(__name__)

CONSENSUS_FIELDS = {
    "ss_cons": "GC SS_cons",
    "sa_cons": "GC SA_cons",
    "pp_cons": "GC PP_cons",
    "rf": "GC RF",
}


def verify_alignment(msa: Alignment) -> Alignment:
    """Checks a freshly parsed alignment and finalizes it.

    Sets ``alen`` to the length of the first sequence and checks that every
    sequence and every present annotation string has that length, that every
    sequence has data, and that either all or no weights were given. On success
    unset weights become 1.0 and the running length tables are dropped.

    Args:
        msa (Alignment):
            Alignment as left by a reader.

    Returns:
        Alignment:
            The same alignment, finalized.

    Raises:
        MsaFormatError:
            If any check fails. The message names the alignment, the sequence and
            the expected vs. observed lengths.
    """
    if msa.nseq == 0:
        raise MsaFormatError("parse error: no alignment data found")

    label = msa.name if msa.name is not None else ""
    alen = msa.sqlen[0]

    for idx in range(msa.nseq):
        seqname = msa.sqname[idx]
        if not msa.has_sequence(idx):
            raise MsaFormatError(f"MSA {label} parse error: no sequence for {seqname}")

        if msa.has_weights and msa.wgt[idx] is None:
            raise MsaFormatError(
                f"MSA {label} parse error: expected a weight for seq {seqname}"
            )

        if msa.sqlen[idx] != alen:
            raise MsaFormatError(
                f"MSA {label} parse error: sequence {seqname}: length "
                f"{msa.sqlen[idx]}, expected {alen}"
            )

        for tag in SEQ_ANNOTATION_TAGS:
            table = getattr(msa, tag.lower())
            if table is None or table[idx] is None:
                continue
            if len(table[idx]) != alen:
                raise MsaFormatError(
                    f"MSA {label} parse error: GR {tag} for {seqname}: length "
                    f"{len(table[idx])}, expected {alen}"
                )

        for tag, by_seq in msa.gr.items():
            if idx in by_seq and len(by_seq[idx]) != alen:
                raise MsaFormatError(
                    f"MSA {label} parse error: GR {tag} for {seqname}: length "
                    f"{len(by_seq[idx])}, expected {alen}"
                )

    for attr, markup in CONSENSUS_FIELDS.items():
        text = getattr(msa, attr)
        if text is not None and len(text) != alen:
            raise MsaFormatError(
                f"MSA {label} parse error: {markup} markup: len {len(text)}, "
                f"expected {alen}"
            )

    for tag, text in msa.gc.items():
        if len(text) != alen:
            raise MsaFormatError(
                f"MSA {label} parse error: GC {tag} markup: len {len(text)}, "
                f"expected {alen}"
            )

    if not msa.has_weights:
        for idx in range(msa.nseq):
            msa.wgt[idx] = 1.0

    msa.alen = alen
    msa.sqlen = None
    msa.sslen = None
    msa.salen = None
    msa.pplen = None

    logger.debug(f"Verified alignment {label!r}: {msa.nseq} sequences, alen {alen}")
    return msa
