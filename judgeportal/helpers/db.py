from contextlib import contextmanager

from judgeportal.extensions import db


@contextmanager
def atomic():
    """
    Run a block of ORM writes as one transaction.

    Commits when the block finishes, rolls everything back if it raises.
    Helpers called inside the block only add/flush; they never commit.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
