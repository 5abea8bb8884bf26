import io
import textwrap

import pytest

from openmsa.core.config.msa_reader_configs import MsaFileConfig
from openmsa.core.data.io.sequence.errors import (
    InternalInconsistencyError,
    MsaFormatError,
)
from openmsa.core.data.io.sequence.line_source import LineReader
from openmsa.core.data.io.sequence.msafile import (
    ERRBUF_SIZE,
    MsaFile,
    MsaFormat,
    encode_format,
    read_msa,
)
from openmsa.core.data.resources.alphabets import Alphabet, AlphabetType

TWO_STOCKHOLM_RECORDS = textwrap.dedent(
    """\
    # STOCKHOLM 1.0
    #=GF ID first
    a ACGT
    b AC-T
    //
    # STOCKHOLM 1.0
    #=GF ID second
    a AC
    //
    """
)

ENCODE_FORMAT_CASES = {
    "stockholm": ("Stockholm", MsaFormat.STOCKHOLM),
    "pfam": ("PFAM", MsaFormat.PFAM),
    "a2m": ("a2m", MsaFormat.A2M),
    "psiblast": ("PsiBlast", MsaFormat.PSIBLAST),
    "selex": ("selex", MsaFormat.SELEX),
    "afa": ("AFA", MsaFormat.AFA),
    "unknown": ("clustal", MsaFormat.UNKNOWN),
}


@pytest.mark.parametrize(
    "name, expected",
    list(ENCODE_FORMAT_CASES.values()),
    ids=list(ENCODE_FORMAT_CASES.keys()),
)
def test_encode_format(name, expected):
    assert encode_format(name) is expected


class TestMsaFile:
    def test_iterates_over_records(self):
        msafile = MsaFile(io.StringIO(TWO_STOCKHOLM_RECORDS), "stockholm")
        records = list(msafile)
        assert [msa.name for msa in records] == ["first", "second"]
        assert msafile.read() is None
        assert msafile.errbuf == ""

    def test_pfam_reads_as_stockholm(self):
        msa = MsaFile(TWO_STOCKHOLM_RECORDS.splitlines(), MsaFormat.PFAM).read()
        assert msa.nseq == 2

    @pytest.mark.parametrize(
        "fmt, text",
        [
            ("selex", "seq1 ACGT\nseq2 AC-T\n"),
            ("afa", ">seq1\nACGT\n>seq2\nAC-T\n"),
        ],
        ids=["selex", "afa"],
    )
    def test_dispatches_on_format(self, fmt, text):
        msa = MsaFile(LineReader.from_string(text), fmt, abc="dna").read()
        assert msa.digital
        assert msa.abc == Alphabet(AlphabetType.DNA)
        assert msa.sequences() == ["ACGT", "AC-T"]

    def test_failed_read_fills_errbuf(self):
        msafile = MsaFile(io.StringIO("# STOCKHOLM 1.0\na ACGT\n"), "stockholm")
        with pytest.raises(MsaFormatError):
            msafile.read()
        assert msafile.errbuf == (
            "parse failed (line 2): didn't find // at end of alignment"
        )
        assert msafile.linenumber == 2

    def test_errbuf_is_bounded(self):
        name = "x" * 1000
        msafile = MsaFile(io.StringIO(f">{name}\nACGT\n>{name}\nACGT\n"), "afa")
        with pytest.raises(MsaFormatError):
            msafile.read()
        assert len(msafile.errbuf) == ERRBUF_SIZE - 1
        assert msafile.errbuf.startswith("parse failed (line 3): duplicate")

    def test_records_read_before_an_error_stay_valid(self):
        text = TWO_STOCKHOLM_RECORDS.replace("a AC\n", "a AC\nb A\n")
        msafile = MsaFile(io.StringIO(text), "stockholm")
        first = msafile.read()
        with pytest.raises(MsaFormatError, match="sequence b: length 1"):
            msafile.read()
        assert first.sequences() == ["ACGT", "AC-T"]

    @pytest.mark.parametrize("fmt", ["a2m", "psiblast"])
    def test_unsupported_formats(self, fmt):
        msafile = MsaFile(io.StringIO(">a\nACGT\n"), fmt)
        with pytest.raises(MsaFormatError, match="input parser not implemented yet"):
            msafile.read()
        assert msafile.errbuf == (
            f"{fmt.upper()} format input parser not implemented yet."
        )

    def test_unknown_format(self):
        msafile = MsaFile(io.StringIO(">a\nACGT\n"), "clustal")
        assert msafile.format is MsaFormat.UNKNOWN
        with pytest.raises(InternalInconsistencyError):
            msafile.read()

    def test_from_config(self):
        config = MsaFileConfig(format="selex", alphabet="rna", keyhash=False)
        msafile = MsaFile.from_config(io.StringIO("a ACGU\n"), config)
        assert msafile.format is MsaFormat.SELEX
        assert msafile.abc == Alphabet(AlphabetType.RNA)
        assert not msafile.keyhash
        assert msafile.read().sequences() == ["ACGU"]


def test_read_msa():
    msa = read_msa(io.StringIO(">a\nAC\n>b\nGT\n"), "afa")
    assert msa.sequences() == ["AC", "GT"]
    assert not msa.digital
