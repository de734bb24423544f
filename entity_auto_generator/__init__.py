"""
Entity Auto Generator: derive records, repositories, services and controllers
from an existing PostgreSQL schema.
"""

__version__ = "0.1.0"
