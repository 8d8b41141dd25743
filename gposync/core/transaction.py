from contextlib import contextmanager

from django.db import transaction, DatabaseError

from gposync.core.exceptions import RepositoryError

import logging

logger = logging.getLogger(__name__)


@contextmanager
def repository_transaction():
    """ Runs the enclosed block in one database transaction

    Any exception rolls the transaction back. Errors of the database are
    logged and re-raised as RepositoryError. """
    try:
        with transaction.atomic():
            yield

    except DatabaseError as ex:
        logger.exception("database error: %s", ex)
        raise RepositoryError() from ex

