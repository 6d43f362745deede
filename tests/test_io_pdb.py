import numpy as np
import pytest

from conftest import pdb_line, write_pdb
from glowdock.data.io import load_config, load_normal_modes, load_poses, load_structure, parse_swarm_id
from glowdock.errors import ConfigurationError, ParseError
from glowdock.scoring.dfire import DFIRE_ATOM_TYPES


def test_load_structure_reads_atom_and_hetatm(tmp_path, dfire):
    pdb_content = "\n".join(
        [
            "HEADER    TEST PDB",
            "ATOM      1  N   ALA A   1      11.104  13.207  10.456  1.00 20.00           N",
            "ATOM      2  CA  ALA A   1      12.560  13.500  10.300  1.00 20.00           C",
            "HETATM    3  BJ  MMB M   2      14.000  12.000   9.000  1.00 20.00           B",
            "TER",
            "END",
        ]
    )
    pdb_path = tmp_path / "sample.pdb"
    pdb_path.write_text(pdb_content, encoding="utf-8")

    structure = load_structure(str(pdb_path), "sample", dfire)

    assert structure.coords.shape == (3, 3)
    assert np.allclose(
        structure.coords,
        np.array(
            [
                [11.104, 13.207, 10.456],
                [12.56, 13.5, 10.3],
                [14.0, 12.0, 9.0],
            ]
        ),
    )
    assert structure.atom_types.tolist() == [
        DFIRE_ATOM_TYPES[("ALA", "N")],
        DFIRE_ATOM_TYPES[("ALA", "CA")],
        167,
    ]
    assert structure.residue_ids == ("A.ALA.1", "M.MMB.2")
    assert structure.membrane_beads.tolist() == [2]


def test_load_structure_stops_at_first_model(tmp_path, dfire):
    lines = [
        "MODEL        1",
        pdb_line(1, "N", "GLY", "A", 1, (0.0, 0.0, 0.0)),
        "ENDMDL",
        "MODEL        2",
        pdb_line(2, "CA", "GLY", "A", 1, (1.0, 0.0, 0.0)),
        "ENDMDL",
    ]
    path = tmp_path / "models.pdb"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    assert load_structure(str(path), "models", dfire).num_atoms == 1


def test_residue_positions_and_insertion_codes(tmp_path, dfire):
    line = pdb_line(3, "N", "GLY", "A", 7, (0.0, 0.0, 1.0))
    insertion = line[:26] + "B" + line[27:]
    path = tmp_path / "icode.pdb"
    path.write_text(
        "\n".join(
            [
                pdb_line(1, "N", "GLY", "A", 7, (0.0, 0.0, 0.0)),
                pdb_line(2, "CA", "GLY", "A", 7, (1.4, 0.0, 0.0)),
                insertion,
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    structure = load_structure(str(path), "icode", dfire)
    assert structure.residue_ids == ("A.GLY.7", "A.GLY.7B")
    assert structure.residue_position("A.GLY.7") == 0
    assert structure.residue_position("A.GLY.7B") == 1
    assert structure.atom_residues.tolist() == [0, 0, 1]
    with pytest.raises(KeyError):
        structure.residue_position("A.GLY.8")


def test_malformed_coordinates_name_file_and_line(tmp_path, dfire):
    good = pdb_line(1, "N", "ALA", "A", 1, (0.0, 0.0, 0.0))
    bad = pdb_line(2, "CA", "ALA", "A", 1, (1.0, 0.0, 0.0))
    bad = bad[:30] + "   abc  " + bad[38:]
    path = tmp_path / "broken.pdb"
    path.write_text(good + "\n" + bad + "\n", encoding="utf-8")

    with pytest.raises(ParseError, match=r"broken\.pdb:2"):
        load_structure(str(path), "broken", dfire)


def test_unknown_atom_is_rejected_by_dfire(tmp_path, dfire):
    path = write_pdb(tmp_path / "hoh.pdb", [("O", "HOH", "W", 1, (0.0, 0.0, 0.0))])
    with pytest.raises(ParseError, match="not supported"):
        load_structure(path, "water", dfire)


def test_empty_structure_is_a_parse_error(tmp_path, dfire):
    path = tmp_path / "empty.pdb"
    path.write_text("HEADER    EMPTY\nEND\n", encoding="utf-8")
    with pytest.raises(ParseError, match="no ATOM"):
        load_structure(str(path), "empty", dfire)


def test_load_config_rejects_invalid_yaml(tmp_path):
    path = tmp_path / "setup.yaml"
    path.write_text("steps: [1, 2\n", encoding="utf-8")
    with pytest.raises(ParseError):
        load_config(str(path))


def test_load_poses_skips_comments_and_normalizes(tmp_path):
    path = tmp_path / "initial_positions_0.dat"
    path.write_text(
        "# starting poses\n"
        "1.0 2.0 3.0 2.0 0.0 0.0 0.0\n"
        "\n"
        "0.5 0.5 0.5 0.0 0.0 3.0 0.0  # trailing comment\n",
        encoding="utf-8",
    )
    poses = load_poses(str(path))
    assert len(poses) == 2
    assert poses[0].translation.tolist() == [1.0, 2.0, 3.0]
    assert poses[0].rotation.as_array().tolist() == [1.0, 0.0, 0.0, 0.0]
    assert poses[1].rotation.as_array().tolist() == [0.0, 0.0, 1.0, 0.0]


def test_load_poses_requires_extent_fields(tmp_path):
    path = tmp_path / "initial_positions_1.dat"
    path.write_text("0 0 0 1 0 0 0 0.5\n", encoding="utf-8")
    with pytest.raises(ParseError, match="expected 9 fields"):
        load_poses(str(path), num_rec_modes=1, num_lig_modes=1)


@pytest.mark.parametrize(
    "line",
    [
        "0 0 0 0 0 0 0",
        "0 0 nan 1 0 0 0",
        "0 0 zero 1 0 0 0",
        "0 0 0 1 0",
    ],
)
def test_load_poses_rejects_malformed_records(tmp_path, line):
    path = tmp_path / "initial_positions_2.dat"
    path.write_text(line + "\n", encoding="utf-8")
    with pytest.raises(ParseError):
        load_poses(str(path))


def test_load_poses_clamps_extents(tmp_path, caplog):
    from glowdock.data.structs import NormalModeSet

    modes = NormalModeSet(vectors=np.zeros((2, 4, 3)), extent=3.0)
    path = tmp_path / "initial_positions_3.dat"
    path.write_text("0 0 0 1 0 0 0 4.5 -1.0\n", encoding="utf-8")
    poses = load_poses(str(path), num_lig_modes=2, lig_modes=modes)
    assert poses[0].lig_extents.tolist() == [3.0, -1.0]
    assert "clamped" in caplog.text


def test_load_poses_empty_file(tmp_path):
    path = tmp_path / "initial_positions_4.dat"
    path.write_text("# nothing\n", encoding="utf-8")
    with pytest.raises(ParseError, match="no starting poses"):
        load_poses(str(path))


def test_load_normal_modes_accepts_flat_layout(tmp_path):
    path = tmp_path / "lig_nm.npy"
    np.save(path, np.arange(2 * 3 * 3, dtype=float))
    modes = load_normal_modes(str(path), num_modes=2, num_atoms=3, extent=3.0)
    assert modes.vectors.shape == (2, 3, 3)
    assert modes.vectors[1, 0].tolist() == [9.0, 10.0, 11.0]


def test_load_normal_modes_size_mismatch(tmp_path):
    path = tmp_path / "rec_nm.npy"
    np.save(path, np.zeros((1, 5, 3)))
    with pytest.raises(ConfigurationError, match="expected 2 modes"):
        load_normal_modes(str(path), num_modes=2, num_atoms=5, extent=3.0)


def test_parse_swarm_id():
    assert parse_swarm_id("/tmp/run/initial_positions_12.dat") == 12
    assert parse_swarm_id("poses.dat") is None
