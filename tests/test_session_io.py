"""Tests for reading logs back and exporting them to HDF5."""

import h5py
import numpy as np
import pytest

from datalogger.exceptions import ParseError
from datalogger.session_io import LoggedSession, export_hdf5, load_hdf5, read_log


@pytest.fixture
def labeled_log(tmp_path):
    path = tmp_path / "training.csv"
    path.write_text(
        "1.0000,0.5000,-0.5000,0\n"
        "2.0000,1.5000,-1.5000,0\n"
        "3.0000,2.5000,-2.5000,1\n"
    )
    return path


class TestReadLog:

    def test_unlabeled(self, tmp_path):
        path = tmp_path / "plain.csv"
        path.write_text("0.0000,1.0000,2.0000\n1.0000,3.0000,4.0000\n")
        session = read_log(path)
        assert session.n_records == 2
        assert session.n_channels == 2
        assert session.labels is None
        np.testing.assert_allclose(session.elapsed_ms, [0.0, 1.0])
        np.testing.assert_allclose(session.samples, [[1.0, 2.0], [3.0, 4.0]])

    def test_single_record(self, tmp_path):
        path = tmp_path / "one.csv"
        path.write_text("5.0000,1.0000\n")
        session = read_log(path)
        assert session.samples.shape == (1, 1)

    def test_labeled(self, labeled_log):
        session = read_log(labeled_log, labeled=True)
        assert session.n_records == 3
        assert session.n_channels == 2
        assert session.labels.dtype == np.int32
        assert session.labels.tolist() == [0, 0, 1]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")
        session = read_log(path, labeled=True)
        assert session.n_records == 0

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_log(tmp_path / "missing.csv")

    def test_malformed_field(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("1.0,abc\n")
        with pytest.raises(ParseError):
            read_log(path)

    def test_ragged_records(self, tmp_path):
        path = tmp_path / "ragged.csv"
        path.write_text("1.0,2.0,3.0\n2.0,3.0\n")
        with pytest.raises(ParseError):
            read_log(path)

    def test_non_integer_label(self, tmp_path):
        path = tmp_path / "label.csv"
        path.write_text("1.0,2.0,0.5\n")
        with pytest.raises(ParseError):
            read_log(path, labeled=True)

    def test_too_few_columns_for_label(self, tmp_path):
        path = tmp_path / "short.csv"
        path.write_text("1.0,2.0\n")
        with pytest.raises(ParseError):
            read_log(path, labeled=True)


class TestHdf5Export:

    def test_round_trip(self, labeled_log, tmp_path):
        session = read_log(labeled_log, labeled=True)
        path = export_hdf5(session, tmp_path / "out" / "training.h5")
        loaded = load_hdf5(path)
        np.testing.assert_allclose(loaded.elapsed_ms, session.elapsed_ms)
        np.testing.assert_allclose(loaded.samples, session.samples)
        assert loaded.labels.tolist() == [0, 0, 1]

    def test_without_labels(self, tmp_path):
        session = LoggedSession(np.arange(3.0), np.ones((3, 2)))
        path = export_hdf5(session, tmp_path / "plain.h5", compression=None)
        assert load_hdf5(path).labels is None

    def test_metadata_attributes(self, labeled_log, tmp_path):
        session = read_log(labeled_log, labeled=True)
        path = export_hdf5(
            session, tmp_path / "meta.h5",
            metadata={'participant_id': 'P001', 'frequency_hz': 1000.0,
                      'output_labels': ['Rest', 'Fist']},
            compression='lzf',
        )
        with h5py.File(path, 'r') as f:
            assert f.attrs['n_records'] == 3
            assert f.attrs['n_channels'] == 2
            assert f.attrs['participant_id'] == 'P001'
            assert f.attrs['frequency_hz'] == 1000.0
            assert 'Fist' in f.attrs['output_labels_json']
            assert f['samples'].compression == 'lzf'
