"""ABOUTME: Composition root that binds the ORM mappings to a unit of work
ABOUTME: The web app and the CLI call it for each unit of work they hand to the service layer"""

from sqlalchemy.orm import sessionmaker

from accountdesk.adapters import database
from accountdesk.service_layer.unit_of_work import AbstractUnitOfWork, SqlAlchemyUnitOfWork


def bootstrap(
    session_factory: sessionmaker | None = None,
    start_orm: bool = True,
    uow: AbstractUnitOfWork | None = None,
) -> AbstractUnitOfWork:
    """
    Return a unit of work for the service layer.

    Args:
        session_factory: Database to work on, the configured one when None
        start_orm: Map User onto the users table first. Repeat calls are no-ops.
        uow: A ready unit of work, such as a fake, returned unchanged

    Returns:
        A unit of work that has not been entered yet
    """
    if start_orm:
        database.start_mappers()
    if uow is not None:
        return uow
    return SqlAlchemyUnitOfWork(session_factory)
