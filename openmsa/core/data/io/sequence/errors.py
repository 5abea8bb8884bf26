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

"""Exceptions raised while reading alignment files."""

from __future__ import annotations


class MsaFormatError(ValueError):
    """Raised when the input violates the grammar of an alignment format.

    The caller is expected to discard the record that was being parsed. Records
    returned earlier from the same stream are unaffected.
    """

    def __init__(self, message: str, line_number: int | None = None):
        self.message = message
        self.line_number = line_number
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"parse failed (line {self.line_number}): {self.message}"

    def at_line(self, line_number: int) -> MsaFormatError:
        """Returns a copy of this error located at ``line_number``."""
        return type(self)(self.message, line_number)


class InvalidResidueError(MsaFormatError):
    """Raised when a residue can't be digitized in the configured alphabet."""

    def __init__(
        self,
        seqname: str,
        invalid: str,
        line_number: int | None = None,
    ):
        self.seqname = seqname
        self.invalid = invalid
        super().__init__(
            f"invalid residue(s) {invalid!r} in sequence {seqname}", line_number
        )

    def at_line(self, line_number: int) -> InvalidResidueError:
        return InvalidResidueError(self.seqname, self.invalid, line_number)


class MsaNotGrowableError(RuntimeError):
    """Raised when trying to add a sequence to an alignment of fixed size."""


class InternalInconsistencyError(RuntimeError):
    """Raised from branches the grammar makes unreachable."""
