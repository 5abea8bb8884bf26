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

"""Line sources consumed by the alignment readers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator


class LineSource(ABC):
    """Supplies input lines one at a time and counts them.

    Opening files, decompression and the like are up to the implementation; the
    readers only call ``getline`` and look at ``linenumber``.
    """

    @abstractmethod
    def getline(self) -> str | None:
        """Returns the next line without its line terminator, or None at the end of
        the input. I/O failures propagate as ``OSError``."""

    @property
    @abstractmethod
    def linenumber(self) -> int:
        """Number of lines returned so far, i.e. the 1-based number of the last
        line."""


class LineReader(LineSource):
    """LineSource over any iterable of strings, e.g. an open text file.

    Args:
        lines (Iterable[str]):
            Lines of the input, with or without trailing newlines.
    """

    def __init__(self, lines: Iterable[str]):
        self._lines: Iterator[str] = iter(lines)
        self._linenumber = 0
        self._eof = False

    @classmethod
    def from_string(cls, text: str) -> LineReader:
        return cls(text.splitlines())

    def getline(self) -> str | None:
        if self._eof:
            return None
        try:
            line = next(self._lines)
        except StopIteration:
            self._eof = True
            return None
        self._linenumber += 1
        return line.rstrip("\r\n")

    @property
    def linenumber(self) -> int:
        return self._linenumber

    @property
    def at_eof(self) -> bool:
        return self._eof


def is_blank_line(line: str) -> bool:
    return not line or line.isspace()
