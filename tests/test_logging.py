import json
import logging

from authcore.core.logging import setup_logger


def test_json_handler_installed_once(capsys):
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logger(level="INFO", json_format=True)
        setup_logger(level="INFO", json_format=True)
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 1

        logging.getLogger("authcore.test").info("hello %s", "there")
        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "hello there"
        assert record["level"] == "INFO"
        assert record["name"] == "authcore.test"
    finally:
        root.setLevel(level)
        for handler in root.handlers[:]:
            if handler not in before:
                root.removeHandler(handler)
