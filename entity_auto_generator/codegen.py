import logging
from pathlib import Path
from typing import Any, Dict

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    select_autoescape,
)

from entity_auto_generator.codegen_utils import format_python_code_using_black


logger = logging.getLogger(__name__)

# Define the path to the templates directory relative to this file
TEMPLATE_DIR = Path(__file__).parent / "templates"


def setup_jinja_env() -> Environment:
    """Sets up and returns the Jinja2 environment."""
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        # Templates render Python source; escaping only applies to markup
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    env.filters["repr"] = repr
    return env


def generate_file_from_template(
    env: Environment,
    template_name: str,
    context: Dict[str, Any],
    output_path: Path,
    format_code: bool = True,
) -> Path:
    """Renders a Jinja template and saves the output to the specified path."""
    template = env.get_template(template_name)
    rendered_content = template.render(context)
    if format_code and output_path.suffix == ".py":
        rendered_content = format_python_code_using_black(output_path, rendered_content)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(rendered_content)
    logger.debug(f"Generated file: {output_path}")
    return output_path
