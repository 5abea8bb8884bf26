import logging
import re

import numpy as np
import pytest

from openmsa.core.data.io.sequence.errors import InvalidResidueError, MsaFormatError
from openmsa.core.data.io.sequence.stockholm import read_stockholm
from openmsa.core.data.resources.alphabets import Alphabet, AlphabetType

ANNOTATED_ALIGNMENT = """\
    # STOCKHOLM 1.0
    # a free comment
    #=GF ID    tRNA
    #=GF AC    RF00005
    #=GF DE    transfer RNA
    #=GF AU    Griffiths-Jones SR
    #=GF GA    25.0 20.5
    #=GF TC    30.0
    #=GF CC    first comment line
    #=GF CC    second comment line
    #=GF SQ
    #=GS seq1  WT  0.5
    #=GS seq2  WT  1.5
    #=GS seq1  AC  P12345
    #=GS seq2  DE  second sequence
    #=GS seq1  DR  PDB; 1abc

    seq1         ACGU
    #=GR seq1 SS ..<<
    #=GR seq1 PP 9988
    seq2         AC-U
    #=GR seq2 AS *..*
    #=GC SS_cons ..<<
    #=GC RF      xxxx

    seq1         GG
    #=GR seq1 SS >>
    #=GR seq1 PP 77
    seq2         CA
    #=GR seq2 AS ..
    #=GC SS_cons >>
    #=GC RF      xx
    #=GC seq_cons ACGUCA
    //
"""


class TestReadStockholm:
    def test_minimal_alignment(self, line_reader):
        msa = read_stockholm(line_reader("# STOCKHOLM 1.0\nseq1 ACGT\nseq2 AC-T\n//\n"))
        assert msa.nseq == 2
        assert msa.alen == 4
        assert msa.wgt[:2] == [1.0, 1.0]
        assert msa.sequences() == ["ACGT", "AC-T"]

    def test_blocks_are_concatenated(self, line_reader):
        msa = read_stockholm(
            line_reader(
                """
                # STOCKHOLM 1.0
                seq1 ACGT
                seq2 AC-T

                seq1 GG
                seq2 GA
                //
                """
            )
        )
        assert msa.alen == 6
        assert msa.sequences() == ["ACGTGG", "AC-TGA"]

    def test_consecutive_lines_of_one_sequence(self, line_reader):
        split = read_stockholm(
            line_reader("# STOCKHOLM 1.0\nseq1 AC\nseq1 G\nseq1 T\nseq2 AC-T\n//\n")
        )
        joined = read_stockholm(
            line_reader("# STOCKHOLM 1.0\nseq1 ACGT\nseq2 AC-T\n//\n")
        )
        assert split.sequences() == joined.sequences() == ["ACGT", "AC-T"]
        assert split.nseq == 2

    def test_trailing_text_is_ignored(self, line_reader, caplog):
        with caplog.at_level(logging.WARNING):
            msa = read_stockholm(
                line_reader("# STOCKHOLM 1.0\nseq1 ACGT 42\n//\n")
            )
        assert msa.sequences() == ["ACGT"]
        assert "Ignoring text after the aligned residues of seq1" in caplog.text

    def test_markup(self, line_reader):
        msa = read_stockholm(line_reader(ANNOTATED_ALIGNMENT))

        assert (msa.name, msa.acc, msa.desc) == ("tRNA", "RF00005", "transfer RNA")
        assert msa.author == "Griffiths-Jones SR"
        assert msa.cutoffs["GA"] == [25.0, 20.5]
        assert msa.cutoffs["TC"] == [30.0, None]
        assert not msa.has_cutoff("NC")
        assert msa.gf == {"CC": "first comment line\nsecond comment line", "SQ": ""}
        assert msa.comment == [" a free comment"]

        assert msa.wgt[:2] == [0.5, 1.5]
        assert msa.sqacc[0] == "P12345"
        assert msa.sqdesc[1] == "second sequence"
        assert msa.gs == {"DR": {0: "PDB; 1abc"}}

        assert msa.alen == 6
        assert msa.ss_cons == "..<<>>"
        assert msa.rf == "xxxxxx"
        assert msa.gc == {"seq_cons": "ACGUCA"}
        assert msa.ss[:2] == ["..<<>>", None]
        assert msa.pp[0] == "998877"
        assert msa.gr == {"AS": {1: "*..*.."}}

    def test_annotation_before_sequence_line(self, line_reader):
        msa = read_stockholm(
            line_reader(
                """
                # STOCKHOLM 1.0
                #=GR seq2 SS ..
                seq1 AC
                seq2 AC
                //
                """
            )
        )
        assert msa.sqname[:2] == ["seq2", "seq1"]
        assert msa.ss[0] == ".."

    def test_multiple_records(self, line_reader):
        source = line_reader(
            """
            # STOCKHOLM 1.0
            #=GF ID first
            a ACGT
            //

            # STOCKHOLM 1.0
            #=GF ID second
            a AC
            b AC
            //
            """
        )
        first = read_stockholm(source)
        second = read_stockholm(source)
        assert (first.name, first.nseq, first.alen) == ("first", 1, 4)
        assert (second.name, second.nseq, second.alen) == ("second", 2, 2)
        assert read_stockholm(source) is None

    def test_empty_input(self, line_reader):
        assert read_stockholm(line_reader("\n   \n")) is None

    def test_linear_name_lookup(self, line_reader):
        msa = read_stockholm(
            line_reader("# STOCKHOLM 1.0\na AC\nb AC\n\na GT\nb GT\n//\n"),
            keyhash=False,
        )
        assert msa.sequences() == ["ACGT", "ACGT"]

    def test_capacity_grows(self, line_reader):
        rows = "".join(f"seq{i} ACGT\n" for i in range(5))
        msa = read_stockholm(
            line_reader(f"# STOCKHOLM 1.0\n{rows}//\n"), initial_capacity=2
        )
        assert msa.nseq == 5
        assert msa.capacity == 8

    def test_digital_mode(self, line_reader):
        abc = Alphabet(AlphabetType.DNA)
        msa = read_stockholm(
            line_reader("# STOCKHOLM 1.0\nseq1 ACGU\nseq2 ac.t\n//\n"), abc=abc
        )
        assert msa.digital
        np.testing.assert_array_equal(msa.ax[0], [0, 1, 2, 3])
        assert msa.sequences() == ["ACGT", "AC-T"]


STOCKHOLM_ERROR_CASES = {
    "missing_header": (
        "seq1 ACGT\n//\n",
        'parse failed (line 1): missing "# STOCKHOLM" header',
    ),
    "missing_terminator": (
        "# STOCKHOLM 1.0\nseq1 ACGT\n",
        "parse failed (line 2): didn't find // at end of alignment",
    ),
    "gf_without_tag": (
        "# STOCKHOLM 1.0\n#=GF\n//\n",
        "parse failed (line 2): bad #=GF line (missing tag)",
    ),
    "non_numeric_cutoff": (
        "# STOCKHOLM 1.0\n#=GF GA high\n//\n",
        "parse failed (line 2): bad #=GF line (GA cutoff 'high' is not numeric)",
    ),
    "gs_without_text": (
        "# STOCKHOLM 1.0\n#=GS seq1 WT\nseq1 ACGT\n//\n",
        "parse failed (line 2): bad #=GS line",
    ),
    "non_numeric_weight": (
        "# STOCKHOLM 1.0\n#=GS seq1 WT heavy\nseq1 ACGT\n//\n",
        "parse failed (line 2): bad #=GS line (weight 'heavy' is not numeric)",
    ),
    "gc_without_text": (
        "# STOCKHOLM 1.0\nseq1 ACGT\n#=GC SS_cons\n//\n",
        "parse failed (line 3): bad #=GC line",
    ),
    "gr_without_text": (
        "# STOCKHOLM 1.0\nseq1 ACGT\n#=GR seq1 SS\n//\n",
        "parse failed (line 3): bad #=GR line",
    ),
    "sequence_without_text": (
        "# STOCKHOLM 1.0\nseq1\n//\n",
        "parse failed (line 2): bad sequence line",
    ),
    "length_mismatch": (
        "# STOCKHOLM 1.0\nseq1 ACGT\nseq2 ACG\n//\n",
        "parse failed (line 4): MSA  parse error: sequence seq2: length 3, expected 4",
    ),
    "partial_weights": (
        "# STOCKHOLM 1.0\n#=GS seq1 WT 0.5\nseq1 ACGT\nseq2 ACGT\n//\n",
        "expected a weight for seq seq2",
    ),
    "annotation_without_sequence": (
        "# STOCKHOLM 1.0\nseq1 ACGT\n#=GR seqX SS ....\n//\n",
        "no sequence for seqX",
    ),
    "consensus_length_mismatch": (
        "# STOCKHOLM 1.0\nseq1 ACGT\n#=GC RF xxx\n//\n",
        "GC RF markup: len 3, expected 4",
    ),
    "no_sequences": (
        "# STOCKHOLM 1.0\n#=GF ID empty\n//\n",
        "no alignment data found",
    ),
}


@pytest.mark.parametrize(
    "text, message",
    list(STOCKHOLM_ERROR_CASES.values()),
    ids=list(STOCKHOLM_ERROR_CASES.keys()),
)
def test_read_stockholm_errors(line_reader, text, message):
    with pytest.raises(MsaFormatError, match=re.escape(message)):
        read_stockholm(line_reader(text))


def test_invalid_residue_reports_sequence_and_line(line_reader):
    source = line_reader("# STOCKHOLM 1.0\nseq1 ACGT\nseq2 ACGJ\n//\n")
    with pytest.raises(InvalidResidueError) as exc_info:
        read_stockholm(source, abc=Alphabet(AlphabetType.DNA))
    assert exc_info.value.seqname == "seq2"
    assert exc_info.value.invalid == "J"
    assert exc_info.value.line_number == 3
