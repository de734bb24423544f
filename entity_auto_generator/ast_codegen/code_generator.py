"""
Artifact code generator

Turns one ``ClassMetadata`` into the four generated modules of a table and
writes the package scaffolding they import from.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Type

from jinja2 import Environment

from entity_auto_generator.ast_codegen.base import module_name
from entity_auto_generator.ast_codegen.controllers import generate_controller_code
from entity_auto_generator.ast_codegen.records import generate_record_code
from entity_auto_generator.ast_codegen.repositories import generate_repository_code
from entity_auto_generator.ast_codegen.services import generate_service_code
from entity_auto_generator.codegen import generate_file_from_template, setup_jinja_env
from entity_auto_generator.codegen_utils import write_python_file
from entity_auto_generator.constants import GeneratedLayout, NamingDefaults
from entity_auto_generator.domain.models import ClassMetadata
from entity_auto_generator.exceptions import CodeGenerationError

logger = logging.getLogger(__name__)


# Strategy Pattern for the per-table artifacts
class CodeGeneratorStrategy(ABC):
    """Abstract Strategy for one artifact kind"""

    package: str = ""
    module_suffix: str = ""

    def relative_path(self, metadata: ClassMetadata) -> Path:
        return Path(self.package) / f"{module_name(metadata.table_name)}{self.module_suffix}.py"

    @abstractmethod
    def generate_code(self, metadata: ClassMetadata, package_name: str) -> str:
        """Generate the module source for one table."""


class RecordGenerator(CodeGeneratorStrategy):
    """Generates the dataclass record"""
    package = GeneratedLayout.ENTITIES_PACKAGE

    def generate_code(self, metadata: ClassMetadata, package_name: str) -> str:
        return generate_record_code(metadata, package_name)


class RepositoryGenerator(CodeGeneratorStrategy):
    """Generates the data-access class"""
    package = GeneratedLayout.REPOSITORIES_PACKAGE
    module_suffix = "_repository"

    def generate_code(self, metadata: ClassMetadata, package_name: str) -> str:
        return generate_repository_code(metadata, package_name)


class ServiceGenerator(CodeGeneratorStrategy):
    """Generates the business-layer class"""
    package = GeneratedLayout.SERVICES_PACKAGE
    module_suffix = "_service"

    def generate_code(self, metadata: ClassMetadata, package_name: str) -> str:
        return generate_service_code(metadata, package_name)


class ControllerGenerator(CodeGeneratorStrategy):
    """Generates the API entry class"""
    package = GeneratedLayout.CONTROLLERS_PACKAGE
    module_suffix = "_controller"

    def generate_code(self, metadata: ClassMetadata, package_name: str) -> str:
        return generate_controller_code(metadata, package_name)


# Factory Pattern for creating generators
class CodeGeneratorFactory:
    """Factory for creating code generator strategies"""

    _registry: Dict[str, Type[CodeGeneratorStrategy]] = {
        'record': RecordGenerator,
        'repository': RepositoryGenerator,
        'service': ServiceGenerator,
        'controller': ControllerGenerator,
    }

    @classmethod
    def register(cls, name: str, generator_class: Type[CodeGeneratorStrategy]) -> None:
        """Register a new generator strategy"""
        cls._registry[name] = generator_class

    @classmethod
    def create(cls, name: str) -> CodeGeneratorStrategy:
        """Create a generator strategy instance by name"""
        generator_class = cls._registry.get(name)
        if not generator_class:
            raise ValueError(f"Unknown generator type: {name}")
        return generator_class()


# Each artifact imports the ones before it.
EMISSION_ORDER = ('record', 'repository', 'service', 'controller')

SUB_PACKAGE_DESCRIPTIONS = {
    GeneratedLayout.ENTITIES_PACKAGE: "Records",
    GeneratedLayout.REPOSITORIES_PACKAGE: "Repositories",
    GeneratedLayout.SERVICES_PACKAGE: "Services",
    GeneratedLayout.CONTROLLERS_PACKAGE: "Controllers",
}


# Facade Pattern for simplified interface
class CodeGenerator:
    """Facade for the code generation system"""

    def __init__(
        self,
        output_dir: str,
        package_name: str,
        format_code: bool = True,
        env: Optional[Environment] = None,
        stages: Sequence[str] = EMISSION_ORDER,
    ):
        self.output_dir = Path(output_dir)
        self.package_name = package_name
        self.package_path = self.output_dir / package_name
        self.format_code = format_code
        self.env = env or setup_jinja_env()
        self.stages = tuple(stages)

    def write_shared_files(self, tables: List[str], schema: str) -> List[Path]:
        """Render the package scaffolding the per-table modules import from."""
        context = {
            "package_name": self.package_name,
            "schema": schema,
            "tables": tables,
            "not_found_error": GeneratedLayout.NOT_FOUND_ERROR,
            "base_class": GeneratedLayout.REPOSITORY_BASE_CLASS,
            "id_field": NamingDefaults.IDENTIFIER_FIELD_NAME,
        }
        targets = [
            ("package_init.py.j2", self.package_path / "__init__.py", context),
            ("exceptions.py.j2", self.package_path / f"{GeneratedLayout.EXCEPTIONS_MODULE}.py", context),
            ("repository_base.py.j2", self.package_path / f"{GeneratedLayout.REPOSITORY_BASE_MODULE}.py", context),
        ]
        for sub_package in GeneratedLayout.SUB_PACKAGES:
            targets.append((
                "subpackage_init.py.j2",
                self.package_path / sub_package / "__init__.py",
                {"description": SUB_PACKAGE_DESCRIPTIONS[sub_package]},
            ))

        written = []
        for template_name, output_path, template_context in targets:
            try:
                written.append(generate_file_from_template(
                    self.env, template_name, template_context, output_path, format_code=self.format_code
                ))
            except Exception as e:
                raise CodeGenerationError(
                    f"Could not render '{template_name}' to {output_path}: {e}",
                    component="scaffolding",
                ) from e
        logger.debug(f"Wrote {len(written)} shared files under {self.package_path}")
        return written

    def generate_file(self, generator_name: str, metadata: ClassMetadata) -> Path:
        """Generate and write one artifact for one table"""
        generator = CodeGeneratorFactory.create(generator_name)
        output_path = self.package_path / generator.relative_path(metadata)
        try:
            code = generator.generate_code(metadata, self.package_name)
            write_python_file(output_path, code, format_code=self.format_code)
        except Exception as e:
            raise CodeGenerationError(
                f"Error generating {generator_name} for '{metadata.table_name}': {e}",
                component=generator_name,
                table=metadata.table_name,
            ) from e
        logger.debug(f"Generated file: {output_path}")
        return output_path

    def generate_artifacts(self, metadata: ClassMetadata) -> List[Path]:
        """Emit every artifact of a table, in stage order"""
        return [self.generate_file(stage, metadata) for stage in self.stages]
