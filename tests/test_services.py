import csv
import io
from unittest.mock import MagicMock, patch

import pytest

from joint_tracker.joints import JointAngle, evaluate_frame
from joint_tracker.output import CsvOutput, NullOutput, next_indexed_path
from joint_tracker.transforms import Orientation
from marker_pipeline.services.calib import load_calib
from marker_pipeline.services.csv_writer import JointCsvWriter
from conftest import obs


def test_header_layout():
    assert JointCsvWriter.header(2) == [
        "Total Time",
        "Joint 1 Angle",
        "Joint 2 Angle",
        "Marker 0 Rotation",
        "Marker 1 Rotation",
        "Marker 2 Rotation",
        "Marker 3 Rotation",
    ]
    assert JointCsvWriter.header(0) == ["Total Time", "Marker 0 Rotation", "Marker 1 Rotation"]


def test_row_formats_numbers_with_six_significant_digits():
    row = JointCsvWriter.to_row(
        1.23456789,
        [JointAngle(91.2345678, True)],
        [Orientation(-0.0, 10.5, 90.0), None, None],
    )
    assert row == ["1.23457", "91.2346", "0,10.5,90", "", ""]


def test_partial_chain_row_keeps_available_rotations():
    result = evaluate_frame([obs(0, [1, 0, 0]), obs(1, [0, 0, 0])], 1)
    line = JointCsvWriter.to_csv_line(0.5, result.angles, result.orientations)
    assert line == '0.5,,"0,0,0","0,0,0",'


def test_undetected_angle_value_is_not_written():
    row = JointCsvWriter.to_row(0.0, [JointAngle(45.0, False)], [None, None, None])
    assert row == ["0", "", "", "", ""]


def test_full_two_joint_row_splits_back_to_header_width():
    observations = [obs(0, [1, 0, 0]), obs(1, [0, 0, 0]), obs(2, [0, 1, 0]), obs(3, [1, 2, 0])]
    result = evaluate_frame(observations, 2)
    line = JointCsvWriter.to_csv_line(2.0, result.angles, result.orientations)

    fields = next(csv.reader(io.StringIO(line)))
    assert len(fields) == len(JointCsvWriter.header(2)) == 7
    assert fields[1] == "90"
    assert fields[2] == "135"
    assert all(len(f.split(",")) == 3 for f in fields[3:])


def test_writer_persists_header_and_rows(tmp_path):
    path = tmp_path / "angles.csv"
    writer = JointCsvWriter(str(path), 1)
    writer.open()
    writer.append(0.0, [JointAngle(90.0, True)], [Orientation(0, 0, 0)] * 3)
    writer.append(0.1, [JointAngle(float("nan"), False)], [None, None, None])
    writer.close()

    lines = path.read_text().splitlines()
    assert lines[0] == "Total Time,Joint 1 Angle,Marker 0 Rotation,Marker 1 Rotation,Marker 2 Rotation"
    assert lines[1] == '0,90,"0,0,0","0,0,0","0,0,0"'
    assert lines[2] == "0.1,,,,"


def test_csv_output_rows_reach_disk_before_close(tmp_path):
    path = tmp_path / "live.csv"
    out = CsvOutput(path, 1)
    out.open()
    assert path.read_text().splitlines() == [",".join(JointCsvWriter.header(1))]

    out.write_sample(0.5, [JointAngle(90.0, True)], [Orientation(0, 0, 0)] * 3)
    lines = path.read_text().splitlines()
    out.close()

    assert len(lines) == 2
    assert lines[1] == '0.5,90,"0,0,0","0,0,0","0,0,0"'


def test_writer_uses_plain_newlines(tmp_path):
    path = tmp_path / "angles.csv"
    writer = JointCsvWriter(str(path), 0)
    writer.open()
    writer.append(1.0, [], [None, None])
    writer.close()

    assert path.read_bytes() == b"Total Time,Marker 0 Rotation,Marker 1 Rotation\n1,,\n"


def test_csv_output_refuses_existing_file(tmp_path):
    path = tmp_path / "output1.csv"
    path.write_text("old data")
    out = CsvOutput(path, 1)
    with pytest.raises(FileExistsError):
        out.open()
    assert path.read_text() == "old data"


def test_csv_output_write_before_open_is_noop(tmp_path):
    out = CsvOutput(tmp_path / "x.csv", 1)
    out.write_sample(0.0, [JointAngle(1.0, True)], [None, None, None])
    out.close()
    assert not (tmp_path / "x.csv").exists()


def test_null_output_accepts_samples():
    out = NullOutput()
    out.open()
    out.write_sample(0.0, [], [None, None])
    out.close()


def test_next_indexed_path_skips_used_names(tmp_path):
    assert next_indexed_path(tmp_path) == tmp_path / "output1.csv"
    (tmp_path / "output1.csv").touch()
    (tmp_path / "output2.csv").touch()
    assert next_indexed_path(tmp_path) == tmp_path / "output3.csv"


def test_next_indexed_path_exhausted(tmp_path):
    (tmp_path / "output1.csv").touch()
    with pytest.raises(RuntimeError):
        next_indexed_path(tmp_path, max_index=1)


def test_load_calib_reads_expected_nodes(tmp_path):
    """load_calib must pull the expected nodes from cv2.FileStorage."""
    calib = tmp_path / "calib.yml"
    calib.write_text("%YAML:1.0\n")

    nodes = {
        "camera_matrix": MagicMock(**{"mat.return_value": "K"}),
        "distortion_coefficients": MagicMock(**{"empty.return_value": False, "mat.return_value": "D"}),
        "image_width": MagicMock(**{"real.return_value": 1280}),
        "image_height": MagicMock(**{"real.return_value": 720}),
    }
    fs = MagicMock()
    fs.isOpened.return_value = True
    fs.getNode.side_effect = lambda key: nodes[key]

    with patch("marker_pipeline.services.calib.cv2.FileStorage", return_value=fs):
        K, dist, size = load_calib(str(calib))

    assert K == "K"
    assert dist == "D"
    assert size == (1280, 720)
    fs.release.assert_called_once()


def test_load_calib_falls_back_to_dist_coeffs(tmp_path):
    calib = tmp_path / "calib.yml"
    calib.write_text("%YAML:1.0\n")

    nodes = {
        "camera_matrix": MagicMock(**{"mat.return_value": "K"}),
        "distortion_coefficients": MagicMock(**{"empty.return_value": True}),
        "dist_coeffs": MagicMock(**{"mat.return_value": "D2"}),
        "image_width": MagicMock(**{"real.return_value": 640}),
        "image_height": MagicMock(**{"real.return_value": 480}),
    }
    fs = MagicMock()
    fs.isOpened.return_value = True
    fs.getNode.side_effect = lambda key: nodes[key]

    with patch("marker_pipeline.services.calib.cv2.FileStorage", return_value=fs):
        _, dist, _ = load_calib(str(calib))

    assert dist == "D2"


def test_load_calib_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_calib(str(tmp_path / "nope.yml"))
