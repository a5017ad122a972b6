"""Requirements document ingestion."""

from map_validator.spec_ingestion.requirements import (
    load_requirements,
    parse_requirements,
    requirements_from_names,
)

__all__ = ["load_requirements", "parse_requirements", "requirements_from_names"]
