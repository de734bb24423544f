import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from entity_auto_generator.config_validation import load_config
from entity_auto_generator.connection import open_connection, setup_django
from entity_auto_generator.constants import DefaultConfig
from entity_auto_generator.exceptions import EntityGeneratorError
from entity_auto_generator.generation import build_class_metadata, generate_entities_for_all_tables
from entity_auto_generator.introspection import SchemaReader
from entity_auto_generator.colored_logging import (
    setup_colored_logging,
    log_success,
    log_progress,
    log_section,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="entity-auto-generator",
        description="Generate records, repositories, services and controllers from an existing PostgreSQL schema.",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Path to the YAML configuration file (containing Django DATABASES dict).",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        help="Directory to generate the package in. Overrides config file setting.",
    )
    parser.add_argument(
        "--schema",
        dest="schema_name",
        help="Database schema to introspect. Overrides config file setting.",
    )
    parser.add_argument(
        "--package-name",
        help="Name of the generated Python package. Overrides config file setting.",
    )
    parser.add_argument(
        "--continue-on-table-error",
        action="store_true",
        default=None,
        help="Skip tables whose keys cannot be mapped instead of aborting.",
    )
    parser.add_argument(
        "--dump-metadata",
        metavar="FILE",
        help="Write the class metadata of every table to FILE (YAML) instead of generating code.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose DEBUG logging for the generator tool.",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output (useful for CI/CD environments).",
    )
    return parser


def dump_metadata(reader: SchemaReader, config, path: str) -> None:
    metadata = build_class_metadata(
        reader,
        include_tables=config.include_tables,
        exclude_tables=config.exclude_tables,
        continue_on_table_error=config.continue_on_table_error,
    )
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump([m.to_dict() for m in metadata], f, sort_keys=False)
    log_success(logger, f"Wrote metadata for {len(metadata)} tables to {path}")


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    setup_colored_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        use_colors=not args.no_color,
    )
    if args.verbose:
        logger.debug("Verbose mode enabled. DEBUG level logging activated.")

    try:
        log_progress(logger, "Loading configuration...")
        config = load_config(args.config, args)

        log_progress(logger, "Configuring Django database connection...")
        setup_django(config.databases)

        with open_connection(DefaultConfig.DB_ALIAS) as connection:
            reader = SchemaReader(connection, schema=config.schema_name)

            if args.dump_metadata:
                log_section(logger, "Class Metadata")
                dump_metadata(reader, config, args.dump_metadata)
                return

            log_section(logger, "Code Generation")
            report = generate_entities_for_all_tables(reader, config.output_dir, config)

        if report.failed_tables:
            for table, reason in report.failed_tables.items():
                logger.error(f"Table '{table}' was not generated: {reason}")
            sys.exit(1)

        log_section(logger, "Completion")
        log_success(logger, f"Generated package at {Path(config.output_dir) / config.package_name}")

    except EntityGeneratorError as e:
        logger.error(str(e), exc_info=args.verbose)
        sys.exit(1)
    except Exception as e:
        logger.error(f"An unexpected error occurred during generation: {e}", exc_info=True)
        sys.exit(1)


# --- Script Entry Point ---
if __name__ == "__main__":
    main()
