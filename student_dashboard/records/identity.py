"""
Identity of student records.

Two records are the same logical student when their composite keys are
equal. The key combines the server id with the mail address; records that
were never confirmed by the server (no id) fall back to mail alone.
"""

from student_dashboard.records.models import Student


def key_of(record: Student) -> str:
    """
    Composite key used to deduplicate records.

    Returns:
        "{id}-{mail}" when id is a non-empty string (a missing mail renders
        as empty, giving "{id}-"), else mail, else "".

    Note:
        A record with neither id nor mail resolves to "". Every such record
        collides with every other one, so merge() keeps only the last of
        them. Callers that can produce such records should give them a
        placeholder id first, as RecordStore.add does.
    """
    if record.id:
        return f"{record.id}-{record.mail or ''}"
    return record.mail or ""


def identity_of(record: Student) -> str:
    """
    Looser identity: id if present, else mail, else "".

    Used when deciding whether a locally cached record shadows a remote
    one, and as the remote id for updates of records that only have a mail.
    """
    return record.id or record.mail or ""
