"""
Generation run loop.

Enumerates the tables of the schema, builds each table's class metadata and
hands it to the emitters. Tables are processed one at a time; class names are
derived from table names alone, so no table needs another's metadata first.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .ast_codegen.code_generator import CodeGenerator
from .colored_logging import log_highlight, log_progress, log_success
from .config_validation import ToolConfigSchema
from .domain.builder import EntityModelBuilder
from .domain.models import ClassMetadata
from .exceptions import MalformedConstraintError
from .introspection import SchemaReader

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """Outcome of one generation run."""

    tables: List[str] = field(default_factory=list)
    artifacts: List[Path] = field(default_factory=list)
    failed_tables: Dict[str, str] = field(default_factory=dict)
    unmapped_fields: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.failed_tables

    def summary(self) -> str:
        parts = [f"{len(self.tables)} tables", f"{len(self.artifacts)} files"]
        if self.failed_tables:
            parts.append(f"{len(self.failed_tables)} failed")
        if self.unmapped_fields:
            count = sum(len(names) for names in self.unmapped_fields.values())
            parts.append(f"{count} fields with unmapped types")
        return ", ".join(parts)


def select_tables(
    tables: List[str],
    include_tables: Optional[List[str]] = None,
    exclude_tables: Optional[List[str]] = None,
) -> List[str]:
    """Apply include/exclude filters, keeping enumeration order. Exclusion wins."""
    include_set = set(include_tables) if include_tables else None
    exclude_set = set(exclude_tables or [])

    selected = []
    for table in tables:
        if table in exclude_set:
            log_highlight(logger, f"Excluding table: {table}")
            continue
        if include_set is not None and table not in include_set:
            logger.debug(f"Skipping table '{table}' (not in include list).")
            continue
        selected.append(table)

    if include_set:
        missing = sorted(include_set - set(tables))
        if missing:
            logger.warning(f"Included tables not found in schema: {', '.join(missing)}")
    return selected


def iter_class_metadata(
    reader: SchemaReader,
    tables: List[str],
    continue_on_table_error: bool = False,
    report: Optional[GenerationReport] = None,
) -> Iterator[ClassMetadata]:
    """
    Build metadata for each table in order.

    ``SchemaAccessError`` always propagates. ``MalformedConstraintError``
    propagates too, unless ``continue_on_table_error`` is set, in which case
    the table is recorded on ``report`` and skipped.
    """
    builder = EntityModelBuilder(reader)
    for table in tables:
        log_progress(logger, f"Building metadata for table '{table}'")
        try:
            metadata = builder.build(table)
        except MalformedConstraintError as e:
            if not continue_on_table_error:
                raise
            logger.error(f"Skipping table '{table}': {e.message}")
            if report is not None:
                report.failed_tables[table] = e.message
            continue

        if report is not None:
            report.tables.append(table)
            if metadata.unmapped_fields:
                report.unmapped_fields[table] = [f.name for f in metadata.unmapped_fields]
        yield metadata


def build_class_metadata(
    reader: SchemaReader,
    include_tables: Optional[List[str]] = None,
    exclude_tables: Optional[List[str]] = None,
    continue_on_table_error: bool = False,
) -> List[ClassMetadata]:
    """Build metadata for every selected table without emitting anything."""
    tables = select_tables(reader.list_tables(), include_tables, exclude_tables)
    return list(iter_class_metadata(reader, tables, continue_on_table_error))


def generate_entities_for_all_tables(
    reader: SchemaReader,
    output_dir: str,
    config: ToolConfigSchema,
    generator: Optional[CodeGenerator] = None,
) -> GenerationReport:
    """
    Run the whole pipeline: enumerate, build, emit.

    Each table's artifacts are written record first, then repository,
    service and controller, before the next table is built.
    """
    report = GenerationReport()
    generator = generator or CodeGenerator(output_dir, config.package_name, format_code=config.format_code)

    all_tables = reader.list_tables()
    log_highlight(logger, f"Found {len(all_tables)} tables in schema '{reader.schema}'")
    tables = select_tables(all_tables, config.include_tables, config.exclude_tables)
    if not tables:
        logger.warning("No tables selected for generation after filtering.")
        return report

    report.artifacts.extend(generator.write_shared_files(tables, reader.schema))

    for metadata in iter_class_metadata(reader, tables, config.continue_on_table_error, report):
        report.artifacts.extend(generator.generate_artifacts(metadata))
        logger.info(f"Generated {metadata.name} ({metadata.table_name})")

    log_success(logger, f"Generation finished: {report.summary()}")
    return report
