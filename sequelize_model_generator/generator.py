"""
Generation pipeline: prepare the output folder, copy the model loader files,
walk the schema and write one definition file per model.

Descriptions are produced synchronously by the walker. Rendering happens as
they are produced and file writes are handed to a bounded thread pool. The
first failure cancels every write that has not started yet.
"""

import logging
import shutil
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from jinja2 import Environment, TemplateNotFound

from .codegen import format_js_code_using_jsbeautifier, render_model, setup_jinja_env
from .config import ResolvedConfig
from .constants import TEMPLATE_DIR, OutputPaths
from .domain.models import ModelDescription
from .domain.schema import Database
from .domain.walker import walk
from .exceptions import MissingConfigError, OutputError
from .introspection import SnapshotIntrospector

logger = logging.getLogger(__name__)


class SchemaIntrospector(Protocol):
    """Produces the schema graph for a run."""

    required_config_keys: Sequence[str]

    def introspect(self, config: ResolvedConfig) -> Database: ...


def check_required_config(config: ResolvedConfig, keys: Iterable[str]) -> None:
    """
    Ensure the keys an introspector needs are set.

    Raises:
        MissingConfigError: For the first key that is absent or empty
    """
    for key in keys:
        if config.get(key, None) in (None, ""):
            raise MissingConfigError(key)


def prepare_output_folder(config: ResolvedConfig) -> Path:
    """
    Reset the generated files folder.

    The definition files folder is removed and recreated with a marker file;
    the custom definitions folder is created if missing and never touched.

    Returns:
        The definition files folder
    """
    root = Path(config.get("output.folder"))
    definition_dir = root / OutputPaths.DEFINITION_DIR
    try:
        if definition_dir.exists():
            shutil.rmtree(definition_dir)
        definition_dir.mkdir(parents=True)
        (definition_dir / OutputPaths.DO_NOT_EDIT_MARKER).touch()
        (root / OutputPaths.CUSTOM_DIR).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputError(
            f"Could not prepare output folder: {e}", file_path=str(definition_dir)
        ) from e
    logger.debug(f"Prepared output folder {definition_dir}")
    return definition_dir


def copy_utility_files(config: ResolvedConfig) -> List[Path]:
    """
    Copy the model loader files from the template folder to output.folder.

    Files missing from the template folder are skipped.

    Returns:
        Paths of the copied files
    """
    source_dir = Path(config.get("template.folder") or TEMPLATE_DIR)
    root = Path(config.get("output.folder"))
    copied = []
    for name in OutputPaths.UTILITY_FILES:
        source = source_dir / name
        if not source.is_file():
            logger.debug(f"No {name} in template folder {source_dir}")
            continue
        target = root / name
        try:
            shutil.copyfile(source, target)
        except OSError as e:
            raise OutputError(f"Could not copy utility file: {e}", file_path=str(target)) from e
        if config.get("output.log"):
            logger.info(f"(Created) Utility file '{name}' is created in '{root}'")
        copied.append(target)
    return copied


def write_model(path: Path, content: str, description: ModelDescription,
                config: ResolvedConfig) -> Path:
    """Format and write one definition file."""
    if config.get("output.beautify"):
        content = format_js_code_using_jsbeautifier(content, config)
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise OutputError(
            f"Could not write model file: {e}",
            file_path=str(path),
            table=description.qualified_name,
        ) from e
    if config.get("output.log"):
        logger.info(
            f"(Created) File '{description.file_name}' is created for model "
            f"'{description.model_name}'"
        )
    return path


def _raise_first_failure(futures: Dict[Future, ModelDescription]) -> None:
    for future, description in futures.items():
        if future.done() and not future.cancelled() and future.exception() is not None:
            error = future.exception()
            if isinstance(error, OutputError):
                raise error
            raise OutputError(
                f"Writing model '{description.model_name}' failed: {error}",
                table=description.qualified_name,
            ) from error


def write_models(descriptions: Iterable[ModelDescription], config: ResolvedConfig,
                 env: Optional[Environment] = None) -> List[Path]:
    """
    Render descriptions and write them with at most output.concurrency writers.

    Args:
        descriptions: Model descriptions, usually straight from the walker
        config: Resolved configuration
        env: Jinja environment; built from template.folder when omitted

    Returns:
        Written file paths, in description order

    Raises:
        OutputError: On the first failed write; pending writes are cancelled
    """
    env = env or setup_jinja_env(config.get("template.folder"))
    template_name = config.get("template.name")
    definition_dir = Path(config.get("output.folder")) / OutputPaths.DEFINITION_DIR

    pool = ThreadPoolExecutor(
        max_workers=config.get("output.concurrency"),
        thread_name_prefix="model-writer",
    )
    futures: Dict[Future, ModelDescription] = {}
    try:
        for description in descriptions:
            # Stop producing as soon as a write has failed
            _raise_first_failure(futures)
            content = render_model(env, template_name, description, config)
            path = definition_dir / description.file_name
            futures[pool.submit(write_model, path, content, description, config)] = description

        wait(futures, return_when=FIRST_EXCEPTION)
        _raise_first_failure(futures)
    except BaseException:
        for future in futures:
            future.cancel()
        pool.shutdown(wait=True)
        raise
    pool.shutdown(wait=True)
    return [future.result() for future in futures]


def generate(config: ResolvedConfig,
             introspector: Optional[SchemaIntrospector] = None) -> List[Path]:
    """
    Run a full generation.

    Args:
        config: Resolved configuration
        introspector: Source of the schema graph; a SnapshotIntrospector reading
            database.snapshot when omitted

    Returns:
        Paths of the written definition files
    """
    introspector = introspector or SnapshotIntrospector()
    check_required_config(config, introspector.required_config_keys)

    env = setup_jinja_env(config.get("template.folder"))
    template_name = config.get("template.name")
    try:
        env.get_template(template_name)
    except TemplateNotFound as e:
        raise OutputError(
            f"Template '{template_name}' not found",
            file_path=str(config.get("template.folder") or "packaged templates"),
        ) from e

    prepare_output_folder(config)
    copy_utility_files(config)
    database = introspector.introspect(config)
    written = write_models(walk(database, config), config, env)
    logger.info(f"Generated {len(written)} model file(s)")
    return written
