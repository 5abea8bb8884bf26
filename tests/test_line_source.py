import io

from openmsa.core.data.io.sequence.line_source import LineReader, is_blank_line


class TestLineReader:
    def test_counts_returned_lines(self):
        reader = LineReader(io.StringIO("first\r\nsecond\n"))
        assert reader.getline() == "first"
        assert reader.linenumber == 1
        assert reader.getline() == "second"
        assert reader.linenumber == 2

    def test_end_of_input_does_not_advance(self):
        reader = LineReader.from_string("only")
        reader.getline()
        assert reader.getline() is None
        assert reader.getline() is None
        assert reader.linenumber == 1
        assert reader.at_eof

    def test_empty_input(self):
        reader = LineReader([])
        assert reader.getline() is None
        assert reader.linenumber == 0


def test_is_blank_line():
    assert is_blank_line("")
    assert is_blank_line(" \t ")
    assert not is_blank_line("  x")
