"""Persistence layer: engine, schema, repositories and unit of work."""

from tunetransfer.infrastructure.persistence.unit_of_work import (
    DatabaseUnitOfWork,
    make_uow_factory,
)

__all__ = ["DatabaseUnitOfWork", "make_uow_factory"]
