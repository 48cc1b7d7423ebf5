# Overview: Transaction boundary and row-locking helpers shared by the services.

from __future__ import annotations

from sqlalchemy.exc import DisconnectionError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import ConflictError, StorageUnavailableError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    populate_existing() makes the locked read overwrite stale identity-map state.
    """
    return query.with_for_update().populate_existing()


def run_in_transaction(func):
    """
    Execute one unit of work as a single all-or-nothing transaction.

    Commits when func returns, rolls back on any exception. Connectivity
    failures surface as StorageUnavailableError and optimistic version
    conflicts or constraint violations as ConflictError. Nothing is
    retried.
    """
    try:
        result = func()
        db.session.commit()
        return result
    except StaleDataError as exc:
        db.session.rollback()
        raise ConflictError("Record was modified concurrently; reload and try again") from exc
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("Write rejected by a database constraint", details={"reason": str(exc.orig)}) from exc
    except (OperationalError, InterfaceError, DisconnectionError) as exc:
        db.session.rollback()
        raise StorageUnavailableError("Data store unavailable") from exc
    except Exception:
        db.session.rollback()
        raise
