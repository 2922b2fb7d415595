from collections import namedtuple
from datetime import datetime

from flask import current_app
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from matchday import db, errors
from matchday.models import Match

Mutation = namedtuple('Mutation', ['match', 'events'])


def run_mutation(match_id, mutate, max_attempts=None) -> Mutation:
    """Apply ``mutate`` to a freshly loaded match under optimistic concurrency.

    ``mutate(match)`` validates, changes the match in place and returns the
    list of domain events it produced. The commit only succeeds if the match
    version is still the one that was read; otherwise the session is rolled
    back and the whole read-compute-write cycle is retried, up to
    ``MUTATION_MAX_ATTEMPTS`` times. Domain errors roll back and propagate
    untouched, so a rejected mutation never leaves partial state behind.
    """
    if max_attempts is None:
        max_attempts = int(current_app.config.get('MUTATION_MAX_ATTEMPTS', 3))

    for attempt in range(1, max_attempts + 1):
        match = db.session.get(Match, match_id)
        if match is None:
            db.session.rollback()
            raise errors.MatchNotFoundError(match_id)
        try:
            events = mutate(match) or []
            # Bump the version even when only player rows changed
            match.updated_at = datetime.now()
            flag_modified(match, 'updated_at')
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            current_app.logger.info(f"[retry] match={match_id} attempt={attempt}/{max_attempts} stale version")
            continue
        except errors.MatchError:
            db.session.rollback()
            raise
        return Mutation(match, list(events))

    current_app.logger.warning(f"[conflict] match={match_id} gave up after {max_attempts} attempts")
    raise errors.ConcurrentModificationError(match_id, max_attempts)
