# Overview: Atomic read-modify-write helpers used for every exclusive state transition.

from __future__ import annotations

from ..extensions import db


def compare_and_set(query, values: dict) -> bool:
    """
    Conditional UPDATE in the current transaction.

    The query's filter is the expected state; values is the new state.
    Returns True when exactly one row moved. Two racing callers with the same
    expectation cannot both see True: the second one's WHERE no longer matches
    once the first commits.

    Does not commit.
    """
    updated = query.update(values, synchronize_session=False)
    return updated == 1


def compare_and_delete(query) -> bool:
    """Conditional DELETE in the current transaction; True when one row went."""
    deleted = query.delete(synchronize_session=False)
    return deleted == 1


def reload(model, pk):
    """Fresh copy of a row after a rollback or a lost race (None if gone)."""
    return db.session.get(model, pk, populate_existing=True)
