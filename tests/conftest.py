import textwrap

import pytest

from openmsa.core.data.io.sequence.line_source import LineReader


@pytest.fixture
def line_reader():
    """Builds a LineReader over dedented text."""

    def _make(text):
        return LineReader.from_string(textwrap.dedent(text))

    return _make
