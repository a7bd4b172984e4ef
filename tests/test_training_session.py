"""Tests for sampler + sequencer orchestration and the command line entry point."""

from itertools import groupby

import numpy as np
import pytest

from datalogger.config import LoggerConfig
from datalogger.exceptions import ChannelCountError
from datalogger.persistence import load_object
from datalogger.session_io import read_log
from tests.conftest import CountingProvider, wait_until
from training.sequencer import TrainingConfig, TrainingPhase
from training.training_session import SessionSnapshot, TrainingSession, main


@pytest.fixture
def logger_config():
    return LoggerConfig(frequency_hz=500.0, channel_count=2, history_depth=20,
                        history=True)


@pytest.fixture
def short_protocol():
    return TrainingConfig(relax_time_ms=40, contraction_time_ms=80,
                          train_output_num=2, collection_cycles=2,
                          output_labels=('Rest', 'Fist'))


class TestTrainingSession:

    def test_full_run_writes_labelled_contractions(self, tmp_path, logger_config,
                                                   short_protocol):
        log_path = tmp_path / "training.csv"
        session = TrainingSession(logger_config, short_protocol, CountingProvider(2), log_path)
        status = session.run(poll_interval_s=0.002)

        assert status.training_complete
        assert status.contraction_events == 4
        assert not session.is_active
        assert not session.sampler.is_running
        assert session.sampler.log_path is None

        parsed = read_log(log_path, labeled=True)
        assert parsed.n_records > 0
        assert parsed.n_channels == 2
        runs = [label for label, _ in groupby(parsed.labels.tolist())]
        assert runs == [0, 1, 0, 1]
        assert np.all(np.diff(parsed.elapsed_ms) > 0)

    def test_snapshot_saved_beside_log(self, tmp_path, logger_config, short_protocol):
        log_path = tmp_path / "run.csv"
        with TrainingSession(logger_config, short_protocol, CountingProvider(2),
                             log_path) as session:
            session.start_data_collection()
            assert session.snapshot_path == tmp_path / "run_session.json"

        snapshot = load_object(tmp_path / "run_session.json")
        assert isinstance(snapshot, SessionSnapshot)
        assert snapshot.logger_config == logger_config
        assert snapshot.training_config == short_protocol
        assert snapshot.log_path == str(log_path)

    def test_phase_callbacks(self, tmp_path, logger_config, short_protocol):
        seen = []
        session = TrainingSession(logger_config, short_protocol, CountingProvider(2),
                                  tmp_path / "cb.csv", on_phase_change=seen.append,
                                  save_snapshot=False)
        session.run(poll_interval_s=0.002)

        assert seen[0].phase == TrainingPhase.RELAXING
        assert seen[-1].phase == TrainingPhase.COMPLETE
        contractions = [(s.current_cycle, s.current_output) for s in seen
                        if s.phase == TrainingPhase.CONTRACTING]
        assert contractions == [(0, 0), (0, 1), (1, 0), (1, 1)]
        assert [s.label for s in seen if s.phase == TrainingPhase.CONTRACTING] == \
            ['Rest', 'Fist', 'Rest', 'Fist']
        assert not (tmp_path / "cb_session.json").exists()

    def test_recording_follows_sequencer(self, tmp_path, logger_config):
        config = TrainingConfig(relax_time_ms=0, contraction_time_ms=10000,
                                train_output_num=1, collection_cycles=1)
        with TrainingSession(logger_config, config, CountingProvider(2),
                             tmp_path / "rec.csv", save_snapshot=False) as session:
            session.start_data_collection()
            assert session.sampler.recording
            assert session.sampler.label == 0
            session.end_data_collection()
            assert not session.sampler.recording
            assert session.status.training_complete

    def test_data_and_history_exposed(self, tmp_path, logger_config, short_protocol):
        with TrainingSession(logger_config, short_protocol, CountingProvider(2),
                             tmp_path / "d.csv", save_snapshot=False) as session:
            session.start_data_collection()
            assert wait_until(lambda: session.sampler.tick_count > 25)
            assert session.data.shape == (2,)
            assert session.data_history.shape == (2, 20)
            assert session.data[0] > 0

    def test_fatal_sampler_error_aborts(self, tmp_path, logger_config, short_protocol):
        session = TrainingSession(logger_config, short_protocol, lambda: [1.0, 2.0, 3.0],
                                  tmp_path / "bad.csv", save_snapshot=False)
        session.start_data_collection()
        assert wait_until(lambda: session.sampler.error is not None)

        with pytest.raises(ChannelCountError):
            session.update()
        assert not session.is_active
        assert session.status.phase == TrainingPhase.IDLE
        assert session.sampler.log_path is None

    def test_start_twice_rejected(self, tmp_path, logger_config, short_protocol):
        with TrainingSession(logger_config, short_protocol, CountingProvider(2),
                             tmp_path / "twice.csv", save_snapshot=False) as session:
            session.start_data_collection()
            with pytest.raises(RuntimeError):
                session.start_data_collection()

    def test_restart_refuses_to_truncate_log(self, tmp_path, logger_config):
        config = TrainingConfig(relax_time_ms=0, contraction_time_ms=10000,
                                train_output_num=1, collection_cycles=1)
        log_path = tmp_path / "restart.csv"
        with TrainingSession(logger_config, config, CountingProvider(2), log_path,
                             save_snapshot=False) as session:
            session.start_data_collection()
            assert wait_until(lambda: session.sampler.record_count >= 5)
            session.end_data_collection()
            first_run = log_path.read_text()

            with pytest.raises(FileExistsError):
                session.start_data_collection()
            assert log_path.read_text() == first_run
            assert session.status.training_complete

    def test_overwrite_allows_restart(self, tmp_path, logger_config, short_protocol):
        log_path = tmp_path / "again.csv"
        log_path.write_text("old\n")
        with TrainingSession(logger_config, short_protocol, CountingProvider(2), log_path,
                             save_snapshot=False, overwrite=True) as session:
            session.start_data_collection()
            assert session.is_active
        assert "old" not in log_path.read_text()

    def test_context_manager_aborts(self, tmp_path, logger_config, short_protocol):
        with TrainingSession(logger_config, short_protocol, CountingProvider(2),
                             tmp_path / "ctx.csv", save_snapshot=False) as session:
            session.start_data_collection()
            assert session.is_active
        assert not session.is_active
        assert not session.status.training_complete
        assert not session.sampler.is_running
        assert session.sampler.log_path is None


class TestCommandLine:

    def test_main_writes_outputs(self, tmp_path, capsys):
        output = tmp_path / "cli.csv"
        code = main([
            '--protocol', 'rest_fist',
            '--relax-ms', '20',
            '--contract-ms', '30',
            '--cycles', '1',
            '--frequency', '200',
            '--channels', '2',
            '--output', str(output),
        ])
        assert code == 0
        assert output.exists()
        assert (tmp_path / "cli.h5").exists()
        assert (tmp_path / "cli_session.json").exists()
        out = capsys.readouterr().out
        assert '✓ Training complete: 2 contraction events' in out

    def test_main_refuses_existing_output(self, tmp_path, capsys):
        output = tmp_path / "taken.csv"
        output.write_text("previous session\n")
        args = ['--relax-ms', '10', '--contract-ms', '10', '--cycles', '1',
                '--protocol', 'rest_fist', '--channels', '2',
                '--output', str(output), '--no-hdf5']
        assert main(args) == 1
        assert output.read_text() == "previous session\n"
        assert '--overwrite' in capsys.readouterr().out

        assert main(args + ['--overwrite']) == 0
        assert output.read_text() != "previous session\n"

    def test_main_without_hdf5(self, tmp_path):
        output = tmp_path / "plain.csv"
        assert main(['--relax-ms', '10', '--contract-ms', '10', '--cycles', '1',
                     '--protocol', 'rest_fist', '--channels', '2',
                     '--output', str(output), '--no-hdf5']) == 0
        assert output.exists()
        assert not (tmp_path / "plain.h5").exists()
