import logging

from signage.logs import configure_logging
from signage.models.config import LoggingSettings


def test_configure_logging_writes_to_file(tmp_path):
    log_file = tmp_path / "logs" / "signage.log"
    root = logging.getLogger()
    previous = list(root.handlers), root.level
    try:
        configure_logging(LoggingSettings(level="DEBUG", file=str(log_file)))
        assert root.level == logging.DEBUG
        logging.getLogger("signage.test").info("hello from test")
        for handler in root.handlers:
            handler.flush()
        assert "hello from test" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = previous[0]
        root.setLevel(previous[1])
