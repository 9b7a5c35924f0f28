"""Tests for loguru-based catalog logging."""

from loguru import logger

from audiobook_catalog.config import CatalogConfig


class TestSetupLogging:
    def setup_method(self):
        logger.remove()

    def test_no_file_sink_by_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CATALOG_LOG_DIR", raising=False)
        monkeypatch.chdir(tmp_path)
        config = CatalogConfig(_env_file=None)
        config.setup_logging()
        logger.info("stderr only")
        assert list(tmp_path.iterdir()) == []

    def test_setup_creates_log_dir(self, tmp_path):
        log_dir = tmp_path / "logs"
        config = CatalogConfig(_env_file=None, log_dir=log_dir)
        config.setup_logging()
        assert log_dir.exists()

    def test_setup_adds_file_sink(self, tmp_path):
        log_dir = tmp_path / "logs"
        config = CatalogConfig(_env_file=None, log_dir=log_dir)
        config.setup_logging()
        logger.bind(stage="test").info("hello from test")
        content = (log_dir / "catalog.log").read_text()
        assert "hello from test" in content

    def test_stage_context_in_output(self, tmp_path):
        log_dir = tmp_path / "logs"
        config = CatalogConfig(_env_file=None, log_dir=log_dir)
        config.setup_logging()
        logger.bind(stage="container").info("decoding")
        content = (log_dir / "catalog.log").read_text()
        assert "container" in content

    def test_default_stage_empty(self, tmp_path):
        log_dir = tmp_path / "logs"
        config = CatalogConfig(_env_file=None, log_dir=log_dir)
        config.setup_logging()
        logger.info("no stage bound")
        content = (log_dir / "catalog.log").read_text()
        assert "no stage bound" in content

    def test_file_sink_gets_debug(self, tmp_path):
        log_dir = tmp_path / "logs"
        config = CatalogConfig(_env_file=None, log_dir=log_dir, log_level="WARNING")
        config.setup_logging()
        logger.debug("debug detail")
        assert "debug detail" in (log_dir / "catalog.log").read_text()
