from app.models import ActivityLog, db


def log_activity(activity: str) -> None:
    """Record an activity performed against the dashboard.

    The entry joins the current transaction and is written by the caller's
    commit, together with the change it describes.
    """
    db.session.add(ActivityLog(activity=activity))
