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

"""This module contains the format-dispatching alignment file reader."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import TYPE_CHECKING

from openmsa.core.data.io.sequence.afa import read_afa
from openmsa.core.data.io.sequence.errors import (
    InternalInconsistencyError,
    MsaFormatError,
)
from openmsa.core.data.io.sequence.line_source import LineReader, LineSource
from openmsa.core.data.io.sequence.selex import read_selex
from openmsa.core.data.io.sequence.stockholm import read_stockholm
from openmsa.core.data.primitives.sequence.alignment import Alignment
from openmsa.core.data.resources.alphabets import Alphabet, AlphabetType

if TYPE_CHECKING:
    from openmsa.core.config.msa_reader_configs import MsaFileConfig

logger = logging.getLogger(__name__)

# Diagnostics kept in MsaFile.errbuf are cut to this many characters
ERRBUF_SIZE = 512


class MsaFormat(Enum):
    UNKNOWN = "unknown"
    STOCKHOLM = "stockholm"
    PFAM = "pfam"
    A2M = "a2m"
    PSIBLAST = "psiblast"
    SELEX = "selex"
    AFA = "afa"


# Formats that have a name but no input parser
UNSUPPORTED_INPUT_FORMATS = (MsaFormat.A2M, MsaFormat.PSIBLAST)


def encode_format(fmtstring: str) -> MsaFormat:
    """Converts a format name (case-insensitive) into a MsaFormat.

    Unrecognized names give MsaFormat.UNKNOWN.
    """
    try:
        return MsaFormat(fmtstring.lower())
    except ValueError:
        return MsaFormat.UNKNOWN


def _as_alphabet(abc: Alphabet | AlphabetType | str | None) -> Alphabet | None:
    if abc is None or isinstance(abc, Alphabet):
        return abc
    return Alphabet.create(abc)


class MsaFile:
    """Reads alignments of one format from a line source.

    Args:
        source (LineSource | Iterable[str]):
            Input lines. Anything other than a LineSource, e.g. an open text file,
            is wrapped in a LineReader.
        format (MsaFormat | str):
            Alignment format of the input.
        abc (Alphabet | AlphabetType | str | None):
            Alphabet to digitize sequences in, None to keep text.
        keyhash (bool):
            Whether alignments index sequence names by hashing instead of linear
            search.
        initial_capacity (int):
            Number of sequence slots allocated up front for growable formats.

    Attributes:
        errbuf (str):
            One-line diagnostic of the last failed read, empty otherwise.
    """

    def __init__(
        self,
        source: LineSource | Iterable[str],
        format: MsaFormat | str,
        abc: Alphabet | AlphabetType | str | None = None,
        keyhash: bool = True,
        initial_capacity: int = 16,
    ):
        if not isinstance(source, LineSource):
            source = LineReader(source)
        if not isinstance(format, MsaFormat):
            format = encode_format(format)

        self.source = source
        self.format = format
        self.abc = _as_alphabet(abc)
        self.keyhash = keyhash
        self.initial_capacity = initial_capacity
        self.errbuf = ""

    @classmethod
    def from_config(
        cls, source: LineSource | Iterable[str], config: MsaFileConfig
    ) -> MsaFile:
        return cls(
            source,
            format=config.format,
            abc=config.alphabet,
            keyhash=config.keyhash,
            initial_capacity=config.initial_capacity,
        )

    @property
    def linenumber(self) -> int:
        return self.source.linenumber

    @property
    def digital(self) -> bool:
        return self.abc is not None

    def _read(self) -> Alignment | None:
        if self.format in (MsaFormat.STOCKHOLM, MsaFormat.PFAM):
            return read_stockholm(
                self.source,
                abc=self.abc,
                keyhash=self.keyhash,
                initial_capacity=self.initial_capacity,
            )
        elif self.format is MsaFormat.SELEX:
            return read_selex(self.source, abc=self.abc, keyhash=self.keyhash)
        elif self.format is MsaFormat.AFA:
            return read_afa(
                self.source,
                abc=self.abc,
                keyhash=self.keyhash,
                initial_capacity=self.initial_capacity,
            )
        elif self.format in UNSUPPORTED_INPUT_FORMATS:
            raise MsaFormatError(
                f"{self.format.name} format input parser not implemented yet."
            )
        raise InternalInconsistencyError(f"no such format: {self.format}")

    def read(self) -> Alignment | None:
        """Reads the next alignment.

        Returns:
            Alignment | None:
                The next verified alignment, or None if there are no more.

        Raises:
            MsaFormatError:
                If the alignment is malformed; ``errbuf`` holds the diagnostic.
                The alignment is discarded, alignments read earlier stay valid.
        """
        self.errbuf = ""
        try:
            msa = self._read()
        except MsaFormatError as e:
            self.errbuf = str(e)[: ERRBUF_SIZE - 1]
            logger.debug(f"Failed to read {self.format.value} alignment: {e}")
            raise
        return msa

    def __iter__(self) -> Iterator[Alignment]:
        while True:
            msa = self.read()
            if msa is None:
                return
            yield msa


def read_msa(
    source: LineSource | Iterable[str],
    format: MsaFormat | str,
    abc: Alphabet | AlphabetType | str | None = None,
) -> Alignment | None:
    """Reads the first alignment from ``source``."""
    return MsaFile(source, format, abc=abc).read()
