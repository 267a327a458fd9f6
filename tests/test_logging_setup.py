"""
Tests for logging configuration
"""

import json
import logging

from codeprompt.utils import TRACE_LEVEL, configure_logging, get_logger
from codeprompt.utils.logging_setup import JsonFormatter


def test_level_resolution(monkeypatch):
    monkeypatch.delenv('CODEPROMPT_LOG_LEVEL', raising=False)
    monkeypatch.delenv('LOG_LEVEL', raising=False)

    assert configure_logging('debug') == logging.DEBUG
    assert configure_logging('TRACE') == TRACE_LEVEL
    assert configure_logging('nonsense') == logging.WARNING
    assert configure_logging() == logging.WARNING

    monkeypatch.setenv('CODEPROMPT_LOG_LEVEL', 'ERROR')
    assert configure_logging() == logging.ERROR
    assert logging.getLogger().level == logging.ERROR


def test_json_format_requested(monkeypatch):
    monkeypatch.setenv('CODEPROMPT_LOG_FORMAT', 'json')
    configure_logging('INFO')

    handler = logging.getLogger().handlers[0]
    assert isinstance(handler.formatter, JsonFormatter)


def test_json_formatter_payload():
    record = logging.LogRecord('codeprompt.test', logging.WARNING, __file__, 1,
                               'skipped %s', ('a.txt',), None)
    record.extra = {'root': '/tmp/x'}

    payload = json.loads(JsonFormatter().format(record))

    assert payload['level'] == 'WARNING'
    assert payload['component'] == 'codeprompt.test'
    assert payload['message'] == 'skipped a.txt'
    assert payload['root'] == '/tmp/x'
    assert payload['timestamp'].endswith('Z')


def test_log_file(tmp_path):
    log_file = tmp_path / "logs" / "codeprompt.log"
    configure_logging('INFO', log_file=str(log_file))

    get_logger('codeprompt.test').info("written to file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "written to file" in log_file.read_text(encoding='utf-8')


def test_trace_method(caplog):
    logger = get_logger('codeprompt.trace')
    with caplog.at_level(TRACE_LEVEL, logger='codeprompt.trace'):
        logger.trace("rule compiled")

    assert any(record.levelno == TRACE_LEVEL for record in caplog.records)
