"""Tests for runtime support: BLAS threads, JAX config, progress, logging."""

import json
import os
from unittest.mock import MagicMock, patch

import pytest
from loguru import logger

from assocquery.core import threading as blas
from assocquery.core.jax_config import configure_jax, get_jax_info
from assocquery.core.progress import progress_iterator
from assocquery.core.threading import (
    apply_blas_limit,
    current_blas_limit,
    resolve_blas_threads,
)
from assocquery.regression import LinearRegressionEngine
from assocquery.utils import log_rss_memory, setup_logging


@pytest.mark.tier0
class TestResolveBlasThreads:
    def test_returns_positive(self, monkeypatch):
        monkeypatch.delenv("ASSOCQUERY_BLAS_THREADS", raising=False)
        assert resolve_blas_threads() > 0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("ASSOCQUERY_BLAS_THREADS", "1")
        assert resolve_blas_threads() == 1

    def test_explicit_count_beats_env(self, monkeypatch):
        monkeypatch.setenv("ASSOCQUERY_BLAS_THREADS", "9999")
        assert resolve_blas_threads(1) == 1

    def test_env_capped_at_cpu_count(self, monkeypatch):
        monkeypatch.setenv("ASSOCQUERY_BLAS_THREADS", "9999")
        assert resolve_blas_threads() == (os.cpu_count() or 64)

    def test_env_floored_at_one(self, monkeypatch):
        monkeypatch.setenv("ASSOCQUERY_BLAS_THREADS", "-3")
        assert resolve_blas_threads() == 1

    def test_env_invalid_falls_back(self, monkeypatch):
        monkeypatch.setenv("ASSOCQUERY_BLAS_THREADS", "many")
        assert resolve_blas_threads() > 0


@pytest.mark.tier0
class TestApplyBlasLimit:
    def test_applied_once(self, monkeypatch):
        monkeypatch.setattr(blas, "_applied", None)
        with patch("assocquery.core.threading.threadpool_limits") as limits:
            assert apply_blas_limit(2) == 2
            assert apply_blas_limit(2) == 2
            limits.assert_called_once_with(limits=2, user_api="blas")
        assert current_blas_limit() == 2

    def test_new_count_replaces_limit(self, monkeypatch):
        monkeypatch.setattr(blas, "_applied", None)
        with patch("assocquery.core.threading.threadpool_limits") as limits:
            apply_blas_limit(2)
            apply_blas_limit(1)
            assert limits.call_count == 2
        assert current_blas_limit() == 1

    def test_engine_applies_limit_at_construction(self, monkeypatch):
        monkeypatch.setattr(blas, "_applied", None)
        with patch("assocquery.core.threading.threadpool_limits") as limits:
            engine = LinearRegressionEngine(n_threads=1)
            LinearRegressionEngine(n_threads=1)
            limits.assert_called_once_with(limits=1, user_api="blas")
        assert engine.n_threads == 1
        assert current_blas_limit() == 1


@pytest.mark.tier0
class TestJaxConfig:
    def test_x64_enabled(self):
        configure_jax(enable_x64=True)
        info = get_jax_info()
        assert info["x64_enabled"] is True
        assert info["backend"]
        assert info["devices"]


@pytest.mark.tier0
class TestProgressIterator:
    def test_finish_on_completion(self):
        with patch("assocquery.core.progress.progressbar") as mock_pb:
            mock_bar = MagicMock()
            mock_pb.ProgressBar.return_value = mock_bar
            assert list(progress_iterator(range(4), total=4, desc="read")) == [0, 1, 2, 3]
            mock_bar.finish.assert_called_once()
            mock_bar.update.assert_called_with(4)

    def test_finish_on_early_break(self):
        with patch("assocquery.core.progress.progressbar") as mock_pb:
            mock_bar = MagicMock()
            mock_pb.ProgressBar.return_value = mock_bar
            gen = progress_iterator(range(10), total=10)
            for i in gen:
                if i == 2:
                    break
            gen.close()
            mock_bar.finish.assert_called_once()

    def test_finish_on_exception(self):
        def exploding():
            yield 1
            raise RuntimeError("boom")

        with patch("assocquery.core.progress.progressbar") as mock_pb:
            mock_bar = MagicMock()
            mock_pb.ProgressBar.return_value = mock_bar
            with pytest.raises(RuntimeError, match="boom"):
                list(progress_iterator(exploding(), total=3))
            mock_bar.finish.assert_called_once()


@pytest.mark.tier0
class TestLogging:
    def test_json_file_sink_carries_request_id(self, tmp_path):
        log_file = tmp_path / "assocquery.log"
        setup_logging(verbose=False, log_file=log_file)
        try:
            logger.bind(request_id="abc123").debug("compiled")
            logger.info("unbound")
        finally:
            logger.remove()
        records = [json.loads(line)["record"] for line in log_file.read_text().splitlines()]
        assert records[0]["extra"]["request_id"] == "abc123"
        assert records[0]["message"] == "compiled"
        assert records[1]["extra"]["request_id"] == "-"

    def test_log_rss_memory(self):
        assert log_rss_memory("test") > 0
