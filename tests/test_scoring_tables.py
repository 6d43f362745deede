import numpy as np
import pytest

from glowdock.errors import ConfigurationError, ParseError, ScoringLookupError
from glowdock.scoring import DFIRE, build_scoring_function, get_scoring_class
from glowdock.scoring.tables import ScoringTable


def test_load_text_table(tmp_path):
    path = tmp_path / "table.txt"
    path.write_text("\n".join(str(v) for v in range(8)) + "\n", encoding="utf-8")
    table = ScoringTable.load(str(path), (2, 2, 2))
    assert table.num_types == 2
    assert table.num_bins == 2
    assert table.values[1, 0, 1] == 5.0
    assert not table.values.flags.writeable


def test_load_npy_table(tmp_path):
    path = tmp_path / "table.npy"
    np.save(path, np.ones((3, 3, 4)))
    table = ScoringTable.load(str(path), (3, 3, 4))
    assert table.values.shape == (3, 3, 4)


def test_table_size_mismatch_is_a_parse_error(tmp_path):
    path = tmp_path / "table.txt"
    path.write_text("1.0\n2.0\n3.0\n", encoding="utf-8")
    with pytest.raises(ParseError, match="expected 8"):
        ScoringTable.load(str(path), (2, 2, 2))


def test_unreadable_table_is_a_parse_error(tmp_path):
    path = tmp_path / "table.txt"
    path.write_text("1.0\nfoo\n", encoding="utf-8")
    with pytest.raises(ParseError):
        ScoringTable.load(str(path), (1, 1, 2))


def test_lookup_fails_fast_outside_the_table():
    table = ScoringTable(values=np.zeros((2, 2, 3)))
    with pytest.raises(ScoringLookupError):
        table.lookup(np.array([0]), np.array([1]), np.array([3]))
    with pytest.raises(ScoringLookupError):
        table.lookup(np.array([2]), np.array([1]), np.array([0]))
    with pytest.raises(ScoringLookupError, match="atom 1 has type 5"):
        table.check_types(np.array([0, 5]), "ligand")


def test_lookup_of_no_pairs_is_empty():
    table = ScoringTable(values=np.zeros((2, 2, 3)))
    empty = np.zeros(0, dtype=np.intp)
    assert table.lookup(empty, empty, empty).size == 0


def test_missing_table_file_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        build_scoring_function("dfire", str(tmp_path))


def test_unknown_scoring_function():
    assert get_scoring_class("DFIRE") is DFIRE
    with pytest.raises(ConfigurationError, match="not supported"):
        get_scoring_class("vdw")


def test_table_with_wrong_shape_is_rejected():
    with pytest.raises(ConfigurationError):
        DFIRE(ScoringTable(values=np.zeros((4, 4, 20))))


def test_data_dir_from_environment(monkeypatch, data_dir):
    monkeypatch.setenv("GLOWDOCK_DATA", data_dir)
    scoring = build_scoring_function("dfire")
    assert scoring.table.num_types == 168
