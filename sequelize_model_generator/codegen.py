import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping, Optional

import jsbeautifier
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from .config import ResolvedConfig
from .constants import TEMPLATE_DIR
from .domain.models import Code, ModelDescription, Quoted
from .domain.naming import pluralize
from .exceptions import OutputError


logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def js_key(key: str) -> str:
    """Render an object key, quoting it unless it is a plain identifier."""
    if isinstance(key, Quoted):
        key = json.loads(key)
    if IDENTIFIER_PATTERN.match(key):
        return key
    return json.dumps(key)


def to_js(value: Any) -> str:
    """
    Custom Jinja filter rendering a Python value as a JavaScript literal.

    Code and Quoted strings are emitted as they are, other strings are quoted.
    """
    if value is None:
        return "null"
    if isinstance(value, (Code, Quoted)):
        return str(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, Mapping):
        items = ", ".join(f"{js_key(str(key))}: {to_js(item)}" for key, item in value.items())
        return "{ " + items + " }" if items else "{}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(to_js(item) for item in value) + "]"
    raise TypeError(f"Cannot render {type(value).__name__} as a JavaScript literal")


def setup_jinja_env(template_folder: Optional[str] = None) -> Environment:
    """Sets up and returns the Jinja2 environment."""
    folder = Path(template_folder) if template_folder else TEMPLATE_DIR
    env = Environment(
        loader=FileSystemLoader(str(folder)),
        autoescape=False,  # Output is JavaScript, not markup
        trim_blocks=True,  # Remove first newline after a block tag
        lstrip_blocks=True,  # Strip leading whitespace from lines with block tags
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["js"] = to_js
    env.filters["js_key"] = js_key
    env.filters["pluralize"] = pluralize
    return env


def render_model(env: Environment, template_name: str, description: ModelDescription,
                 config: ResolvedConfig) -> str:
    """
    Render the definition file of one model.

    Raises:
        OutputError: If the template is missing or fails to render
    """
    try:
        template = env.get_template(template_name)
        return template.render(
            table=description.to_template_context(),
            warning=config.get("output.warning"),
            data_type_variable=config.resolve(description.table_name, "generate.dataTypeVariable"),
        )
    except TemplateError as e:
        raise OutputError(
            f"Failed to render template '{template_name}': {e}",
            table=description.qualified_name,
        ) from e


def format_js_code_using_jsbeautifier(code_string: str, config: ResolvedConfig) -> str:
    """Formats the given JavaScript code using jsbeautifier."""
    options = jsbeautifier.default_options()
    options.indent_size = config.get("output.indent")
    options.preserve_newlines = config.get("output.preserveNewLines")
    options.end_with_newline = True
    try:
        return jsbeautifier.beautify(code_string, options)
    except Exception as e:
        # Log an error if the beautifier fails on unexpected input
        logger.error(f"Could not format JavaScript code using jsbeautifier: {e}")
        logger.warning("Writing unformatted JavaScript code due to jsbeautifier error.")
        return code_string
