import logging

from pythonjsonlogger import jsonlogger

from .config import settings

FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logger(level=None, json_format=None):
    """Install a single stream handler on the root logger.

    Safe to call more than once; the handler is only added the first time.
    """
    level = level or settings.LOG_LEVEL
    json_format = settings.LOG_JSON if json_format is None else json_format

    root = logging.getLogger()
    root.setLevel(level)
    if any(getattr(h, "_authcore", False) for h in root.handlers):
        return root

    handler = logging.StreamHandler()
    if json_format:
        formatter = jsonlogger.JsonFormatter(
            FORMAT, rename_fields={"levelname": "level", "asctime": "timestamp"}
        )
    else:
        formatter = logging.Formatter(FORMAT)
    handler.setFormatter(formatter)
    handler._authcore = True
    root.addHandler(handler)
    return root
