import logging

import pytest

from core.exceptions import ConfigurationError, LoadError, UpsertError
from core.logging import ContextFormatter, LOG_FORMAT
from models.base import SourceSystem
from scripts.run_etl import build_parser, build_requests


def _record(**extra):
    record = logging.LogRecord("ingestion.runner", logging.ERROR, __file__, 1, "ETL Error", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestContextFormatter:

    def test_appends_error_context(self):
        formatter = ContextFormatter("%(levelname)s | %(message)s")

        line = formatter.format(_record(error_context={"batch_index": 2}))

        assert line == "ERROR | ETL Error | context={'batch_index': 2}"

    def test_plain_record_is_unchanged(self):
        formatter = ContextFormatter(LOG_FORMAT)

        assert "context=" not in formatter.format(_record())


class TestExceptions:

    def test_to_dict_carries_context(self):
        cause = RuntimeError("duplicate key")
        error = UpsertError("Failed to merge batch 0", context={"batch_index": 0}, original_exception=cause)

        data = error.to_dict()

        assert isinstance(error, LoadError)
        assert data["error_type"] == "UpsertError"
        assert data["context"]["batch_index"] == 0
        assert data["original_error"] == "duplicate key"
        assert error.__cause__ is cause

    def test_str_includes_context(self):
        error = ConfigurationError("Missing credentials for pca: PCA_API_KEY", context={"missing": ["PCA_API_KEY"]})

        assert str(error).startswith("ConfigurationError: Missing credentials for pca")
        assert "missing=['PCA_API_KEY']" in str(error)


class TestRunEtlCli:

    def test_single_source_request(self):
        args = build_parser().parse_args(["--source", "smarthr", "--reset"])

        [request] = build_requests(args)

        assert request.source == SourceSystem.SMARTHR
        assert request.reset is True
        assert request.target == "bigquery"

    def test_source_and_all_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--source", "garoon", "--all"])

    def test_unknown_source_is_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--source", "workday"])
