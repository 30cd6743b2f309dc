"""
Unit tests for process startup (sidecar/__init__.py, sidecar/cli.py).
"""

import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import MagicMock, patch

import pytest

from sidecar import configure_logging, create_sidecar
from sidecar.backup.connection import ConnectionClosedError, StoreError
from sidecar.backup.snapshot import SnapshotTimeoutError
from sidecar.cli import main
from sidecar.loop import BackupLoop


class TestConfigureLogging:
    """Test logging configuration."""

    def test_console_only_by_default(self, config, restore_root_logger):
        """Test no file handler without LOG_DIR."""
        configure_logging(config)

        root = restore_root_logger
        assert root.level == logging.INFO
        assert not any(isinstance(h, RotatingFileHandler) for h in root.handlers)
        assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)

    def test_file_handler_with_log_dir(self, config, tmp_path, restore_root_logger):
        """Test LOG_DIR adds a rotating sidecar.log."""
        log_dir = tmp_path / 'logs'
        configure_logging(config._replace(log_dir=str(log_dir), log_level='DEBUG'))

        root = restore_root_logger
        assert root.level == logging.DEBUG
        file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert (log_dir / 'sidecar.log').exists()

    def test_unknown_level_falls_back_to_info(self, config, restore_root_logger):
        """Test a bogus LOG_LEVEL does not break startup."""
        configure_logging(config._replace(log_level='CHATTY'))

        assert restore_root_logger.level == logging.INFO


class TestCreateSidecar:
    """Test the sidecar factory."""

    def test_returns_loop(self, env, tmp_path, restore_root_logger):
        """Test a valid environment yields a BackupLoop without connecting."""
        env['ARTIFACT_DIR'] = str(tmp_path / 'artifacts')

        with patch('sidecar.backup.connection.redis.Redis') as mock_redis:
            loop = create_sidecar(env)

        assert isinstance(loop, BackupLoop)
        assert loop.config.interval_seconds == 3600.0
        assert (tmp_path / 'artifacts').is_dir()
        mock_redis.assert_not_called()


class TestMain:
    """Test exit codes."""

    def test_missing_config_exits_non_zero(self):
        """Test an empty environment fails at startup."""
        assert main({}) == 1

    def test_unwritable_artifact_dir_exits_non_zero(self, env, caplog):
        """Test a failure creating ARTIFACT_DIR is logged as fatal instead of escaping."""
        env['ARTIFACT_DIR'] = '/read-only/artifacts'

        with patch('sidecar.configure_logging'), \
                patch('sidecar.os.makedirs', side_effect=PermissionError("Read-only file system")):
            with caplog.at_level(logging.CRITICAL, logger='sidecar.cli'):
                assert main(env) == 1

        assert 'Fatal error' in caplog.text
        assert 'Read-only file system' in caplog.text

    @pytest.mark.parametrize("error", [
        StoreError("Failed to connect to store"),
        ConnectionClosedError("EOF"),
        SnapshotTimeoutError("Timed out waiting for BGSAVE"),
    ])
    @patch('sidecar.cli.create_sidecar')
    def test_fatal_errors_exit_non_zero(self, mock_create, error, caplog):
        """Test any error escaping the loop becomes exit code 1 with a fatal log line."""
        loop = MagicMock()
        loop.run_forever.side_effect = error
        mock_create.return_value = loop

        with caplog.at_level(logging.CRITICAL, logger='sidecar.cli'):
            assert main({}) == 1

        assert 'Fatal error' in caplog.text

    @patch('sidecar.cli.create_sidecar')
    def test_keyboard_interrupt(self, mock_create):
        """Test Ctrl-C exits with 130."""
        mock_create.return_value.run_forever.side_effect = KeyboardInterrupt

        assert main({}) == 130
