import json
import logging

from treasury_finsight.logging import JsonFormatter, get_logger, setup_logging


def test_json_formatter_outputs_valid_json() -> None:
    record = logging.LogRecord(
        name="treasury_finsight.service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Projecting %d days",
        args=(30,),
        exc_info=None,
    )
    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "treasury_finsight.service"
    assert payload["message"] == "Projecting 30 days"
    assert "timestamp" in payload


def test_setup_logging_sets_levels() -> None:
    setup_logging(level="debug", format_type="json")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert get_logger("treasury_finsight").level == logging.DEBUG

    setup_logging(level="WARNING")
    assert logging.getLogger().level == logging.WARNING
