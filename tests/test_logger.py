import logging

from codementor.logger import LEVEL_COLORS, RESET, ColorFormatter, setup_logger


def test_setup_logger_attaches_handlers_once(tmp_path) -> None:
    logger = setup_logger("codementor_logger_test", "DEBUG", str(tmp_path))
    again = setup_logger("codementor_logger_test", "DEBUG", str(tmp_path))

    assert again is logger
    assert len(logger.handlers) == 2
    logger.info("hello file")
    for handler in logger.handlers:
        handler.flush()
    assert "hello file" in (tmp_path / "codementor.log").read_text(encoding="utf-8")


def test_console_lines_are_colored_by_level() -> None:
    record = logging.LogRecord("codementor.test", logging.WARNING, __file__, 1, "careful", None, None)
    line = ColorFormatter().format(record)

    assert line.startswith(LEVEL_COLORS[logging.WARNING])
    assert line.endswith(RESET)
    assert "WARNING - careful" in line
