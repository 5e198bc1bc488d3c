"""
Shared status taxonomy.

Both sheet families write free-text status ("Done", "WIP", "Blocked on env",
"70%"...) into an automation or status column. This keeps the vocabulary and
its evaluation order in one place so the families cannot drift apart; how a
status is *counted* is still decided per family.
"""

from __future__ import annotations

BUCKET_DONE = "done"
BUCKET_IN_PROGRESS = "in-progress"
BUCKET_YET_TO_START = "yet-to-start"
BUCKET_OTHER = "other"

STATUS_BUCKETS = (BUCKET_DONE, BUCKET_IN_PROGRESS, BUCKET_YET_TO_START, BUCKET_OTHER)

KIND_DONE = "done"
KIND_IN_PROGRESS = "in-progress"
KIND_YET_TO_START = "yet-to-start"
KIND_FAILED = "failed"
KIND_UNRECOGNIZED = "unrecognized"

STATUS_KINDS = (KIND_DONE, KIND_IN_PROGRESS, KIND_YET_TO_START, KIND_FAILED, KIND_UNRECOGNIZED)

# Evaluated top to bottom; the first rule with a matching keyword wins.
STATUS_RULES = (
    (KIND_DONE, ("done", "completed", "pass")),
    (KIND_IN_PROGRESS, ("progress", "wip", "pending")),
    (KIND_YET_TO_START, ("not started", "todo", "yet to start")),
    (KIND_FAILED, ("fail", "block", "error")),
)

BUCKET_BY_KIND = {
    KIND_DONE: BUCKET_DONE,
    KIND_IN_PROGRESS: BUCKET_IN_PROGRESS,
    KIND_YET_TO_START: BUCKET_YET_TO_START,
    KIND_FAILED: BUCKET_OTHER,
    KIND_UNRECOGNIZED: BUCKET_OTHER,
}

DEFAULT_STATUS_LABEL = "Not Started"


def classify_status(raw_status: str) -> str:
    """Return the status kind for free-text status; empty text has not started."""
    text = (raw_status or "").strip().lower()
    if not text:
        return KIND_YET_TO_START
    for kind, keywords in STATUS_RULES:
        if any(keyword in text for keyword in keywords):
            return kind
    return KIND_UNRECOGNIZED


def bucket_for(kind: str) -> str:
    return BUCKET_BY_KIND[kind]
