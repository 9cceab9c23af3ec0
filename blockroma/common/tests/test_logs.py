import json
import logging
import sys

import pytest
from pythonjsonlogger import jsonlogger

from blockroma.common import logs


def make_record(exc_info=None):
    return logging.LogRecord(
        name='blockroma.indexer.importer',
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg='Range has been imported',
        args=(),
        exc_info=exc_info,
    )


def get_exc_info():
    try:
        raise ValueError('boom')
    except ValueError:
        return sys.exc_info()


def test_configured_handler_formats_records():
    formatter = logging.getLogger('blockroma').handlers[0].formatter

    line = formatter.format(make_record())

    assert 'INFO' in line
    assert 'blockroma.indexer.importer: Range has been imported' in line


@pytest.mark.parametrize("formatter_class", [logging.Formatter, logs.FlatJsonFormatter])
def test_plain_formatters_support_log_format(formatter_class):
    line = formatter_class(logs.LOG_FORMAT).format(make_record(get_exc_info()))

    assert 'Range has been imported' in line
    assert 'ValueError: boom' in line


def test_json_formatter_takes_fields_from_log_format():
    line = jsonlogger.JsonFormatter(logs.LOG_FORMAT).format(make_record())

    data = json.loads(line)
    assert data['message'] == 'Range has been imported'
    assert data['levelname'] == 'INFO'
    assert 'process' in data
