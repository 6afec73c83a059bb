import argparse
import logging
import sys
from typing import List, Optional

from sequelize_model_generator import __version__
from sequelize_model_generator.colored_logging import (
    setup_colored_logging,
    log_success,
    log_progress,
    log_highlight,
    log_section,
)
from sequelize_model_generator.config import load_config
from sequelize_model_generator.constants import OutputPaths
from sequelize_model_generator.exceptions import GeneratorError
from sequelize_model_generator.generator import generate

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sequelize-model-gen",
        description="Generate Sequelize model definitions from a database schema snapshot.",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Path to a YAML or JSON configuration file.",
    )
    parser.add_argument("-H", "--host", help="Database host. Overrides database.host.")
    parser.add_argument("-P", "--port", help="Database port. Overrides database.port.")
    parser.add_argument("-d", "--database", help="Database name. Overrides database.database.")
    parser.add_argument("-u", "--user", help="Database user. Overrides database.user.")
    parser.add_argument("-p", "--password", help="Database password. Overrides database.password.")
    parser.add_argument(
        "-s",
        "--schema",
        help="Comma separated schemas to generate. Overrides database.schema.",
    )
    parser.add_argument(
        "-f",
        "--schema-file",
        help="Schema snapshot (YAML or JSON). Overrides database.snapshot.",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output folder. Overrides output.folder.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose DEBUG logging.",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output (useful for CI/CD environments).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # --- Logging Setup ---
    setup_colored_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        use_colors=not args.no_color,
    )
    if args.verbose:
        logger.debug("Verbose mode enabled. DEBUG level logging activated.")

    # --- Main Execution Pipeline ---
    try:
        log_progress(logger, "Loading configuration...")
        config = load_config(args.config, args)
        logger.debug(f"Effective configuration: {config}")

        log_section(logger, "Model Generation")
        log_highlight(logger, f"Output folder: {config.get('output.folder')}")
        written = generate(config)

        log_section(logger, "Completion")
        log_success(logger, f"Generated {len(written)} model definition file(s).")
        logger.info(
            f"Put hand-written additions in "
            f"{config.get('output.folder')}/{OutputPaths.CUSTOM_DIR}; "
            f"{OutputPaths.DEFINITION_DIR} is replaced on every run."
        )
        return 0

    # --- Error Handling ---
    except GeneratorError as e:
        logger.error(f"{type(e).__name__}: {e}", exc_info=args.verbose)
        return 1
    except Exception as e:
        logger.error(
            f"An unexpected error occurred during generation: {e}", exc_info=True
        )  # Always show traceback for unexpected
        return 1


# --- Script Entry Point ---
if __name__ == "__main__":
    sys.exit(main())
