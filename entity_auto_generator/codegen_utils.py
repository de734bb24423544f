import logging
from pathlib import Path

from black import FileMode, NothingChanged as BlackNothingChanged, format_str as black_format_str

from .constants import DefaultConfig


logger = logging.getLogger(__name__)

BLACK_FORMATTER_MODE = FileMode(line_length=DefaultConfig.BLACK_LINE_LENGTH)


def format_python_code_using_black(filepath: Path, code_string: str) -> str:
    """Formats the given Python code using Black."""
    try:
        formatted_code = black_format_str(code_string, mode=BLACK_FORMATTER_MODE)
        logger.debug(f"Formatted code using Black: {filepath}")
        return formatted_code
    except BlackNothingChanged:
        logger.debug(f"Black formatter did not change the code: {filepath}")
        return code_string
    except Exception as e:
        logger.error(f"Could not format Python code using Black: {e}", exc_info=False)
        logger.warning(f"Writing unformatted Python code for {filepath} due to Black error.")
        return code_string


def write_python_file(filepath: Path, code_string: str, format_code: bool = True) -> Path:
    """Write a generated module, creating parent directories as needed."""
    if format_code:
        code_string = format_python_code_using_black(filepath, code_string)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    filepath.write_text(code_string, encoding="utf-8")
    logger.debug(f"Wrote {filepath}")
    return filepath
