"""
AST Code Generator Module

This module generates the record, repository, service and controller modules
of each table from its class metadata.
"""

from .records import generate_record_code
from .repositories import generate_repository_code
from .services import generate_service_code
from .controllers import generate_controller_code
from .code_generator import CodeGenerator, CodeGeneratorFactory, EMISSION_ORDER


__all__ = [
    'generate_record_code',
    'generate_repository_code',
    'generate_service_code',
    'generate_controller_code',
    'CodeGenerator',
    'CodeGeneratorFactory',
    'EMISSION_ORDER',
]
