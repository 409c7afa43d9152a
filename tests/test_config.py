import json
import logging

import pytest
from pydantic import ValidationError

from results_proxy.config import Settings
from results_proxy.observability import JSONFormatter


def test_defaults():
    config = Settings()
    assert config.fetch_timeout == 8.0
    assert config.term_ranges == [(10, 60), (901, 960)]
    assert config.item_redacted_fields == ["father_name", "mother_name"]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RESULTS_PROXY_FETCH_TIMEOUT_MS", "1500")
    monkeypatch.setenv("RESULTS_PROXY_TERM_RANGES", "[[1, 5]]")
    config = Settings()
    assert config.fetch_timeout == 1.5
    assert config.term_ranges == [(1, 5)]


@pytest.mark.parametrize(
    "overrides",
    [
        {"fetch_timeout_ms": 0},
        {"max_batch_size": 0},
        {"term_ranges": [(60, 10)]},
        {"term_ranges": [(900, 1000)]},
        {"default_batch_size": 10, "max_batch_size": 5},
    ],
)
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_json_formatter_includes_extras():
    record = logging.LogRecord("results_proxy.fetcher", logging.WARNING, __file__, 1, "bad", None, None)
    record.reg_no = "22104134001"
    record.outcome = "failed"

    line = json.loads(JSONFormatter().format(record))

    assert line["level"] == "WARNING"
    assert line["message"] == "bad"
    assert line["reg_no"] == "22104134001"
    assert line["outcome"] == "failed"
    assert "batch_size" not in line


def test_serve_runs_app_with_configured_address(monkeypatch):
    from results_proxy import serve

    calls = []
    monkeypatch.setattr(serve.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    serve.main()

    assert calls == [
        (
            "results_proxy.main:app",
            {
                "host": serve.settings.host,
                "port": serve.settings.port,
                "log_level": serve.settings.log_level.lower(),
            },
        )
    ]
