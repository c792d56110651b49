"""tests for the pronouncing dictionary."""

import pytest

from kotosume.phonetics import PhoneticDictionary

CMUDICT = """\
;;; # cmudict sample
;;; comments are skipped
NATION  N EY1 SH AH0 N
READ  R EH1 D
READ(2)  R IY1 D
STATION  S T EY1 SH AH0 N
CAT  K AE1 T
"""


@pytest.fixture
def cmudict(tmp_path):
    path = tmp_path / "cmudict.txt"
    path.write_text(CMUDICT, encoding="latin-1")
    return PhoneticDictionary.load(path)


@pytest.mark.unit
def test_load(cmudict):
    assert len(cmudict) == 4
    assert "station" in cmudict
    assert "Station" in cmudict
    assert cmudict.phones("cat") == ("K", "AE1", "T")


@pytest.mark.unit
def test_first_pronunciation_wins(cmudict):
    assert cmudict.phones("read") == ("R", "EH1", "D")


@pytest.mark.unit
def test_rhyme_tail(cmudict):
    assert cmudict.rhyme_tail("station") == ("SH", "AH0", "N")
    assert cmudict.rhyme_tail("station", 2) == ("AH0", "N")
    assert cmudict.rhyme_tail("zebra") is None


@pytest.mark.unit
def test_rhymes(cmudict):
    assert cmudict.rhymes("nation", "station")
    assert not cmudict.rhymes("nation", "cat")
    assert not cmudict.rhymes("nation", "zebra")


@pytest.mark.unit
def test_missing_file(tmp_path):
    with pytest.raises(OSError):
        PhoneticDictionary.load(tmp_path / "missing.txt")
