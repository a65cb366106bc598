"""
Assignment operations, scoped to the owning teacher.

Every function receives the store and the authenticated teacher's id
explicitly. A record is only visible when its ``teacherId`` equals that id;
anything else behaves exactly like a missing record.
"""

import logging
from typing import Any, Dict, List

from database import JSONStore, create_document
from errors import NotFound

logger = logging.getLogger(__name__)

COLLECTION = "assignments"
STATUSES = ("pending", "submitted", "graded")

# Fields a caller may never set through create/update.
PROTECTED_FIELDS = ("id", "teacherId")


def _owned(record: Dict[str, Any], teacher_id: str, assignment_id: str) -> bool:
    return record.get("id") == assignment_id and record.get("teacherId") == teacher_id


def _find_index(records: List[Dict[str, Any]], teacher_id: str, assignment_id: str) -> int:
    for i, record in enumerate(records):
        if _owned(record, teacher_id, assignment_id):
            return i
    return -1


def compute_stats(assignments: List[Dict[str, Any]]) -> Dict[str, int]:
    stats = {"totalAssignments": len(assignments)}
    for status in STATUSES:
        stats[status] = sum(1 for a in assignments if a.get("status") == status)
    return stats


def list_assignments(store: JSONStore, teacher_id: str) -> Dict[str, Any]:
    mine = [a for a in store.load(COLLECTION) if a.get("teacherId") == teacher_id]
    return {"stats": compute_stats(mine), "assignments": mine}


def create_assignment(store: JSONStore, teacher_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Store a new assignment owned by ``teacher_id``.

    Absent fields stay absent, except the two counters which default to 0.
    """
    fields = {k: v for k, v in payload.items() if k not in PROTECTED_FIELDS}
    assignment = {
        "id": store.new_id(),
        **fields,
        "teacherId": teacher_id,
        "submittedCount": fields.get("submittedCount") or 0,
        "gradedCount": fields.get("gradedCount") or 0,
    }
    create_document(COLLECTION, assignment, store=store)
    logger.info("Teacher %s created assignment %s", teacher_id, assignment["id"])
    return assignment


def get_assignment(store: JSONStore, teacher_id: str, assignment_id: str) -> Dict[str, Any]:
    for record in store.load(COLLECTION):
        if _owned(record, teacher_id, assignment_id):
            return record
    raise NotFound()


def update_assignment(
    store: JSONStore, teacher_id: str, assignment_id: str, partial: Dict[str, Any]
) -> Dict[str, Any]:
    """Shallow-merge ``partial`` over the stored record; top-level fields only."""
    changes = {k: v for k, v in partial.items() if k not in PROTECTED_FIELDS}
    with store.transaction(COLLECTION) as records:
        index = _find_index(records, teacher_id, assignment_id)
        if index == -1:
            raise NotFound()
        records[index] = {**records[index], **changes}
        return records[index]


def delete_assignment(store: JSONStore, teacher_id: str, assignment_id: str) -> None:
    # Deleting something that is not there (or not ours) still succeeds.
    with store.transaction(COLLECTION) as records:
        kept = [r for r in records if not _owned(r, teacher_id, assignment_id)]
        removed = len(records) - len(kept)
        records[:] = kept
    logger.info("Teacher %s deleted assignment %s (%d removed)", teacher_id, assignment_id, removed)


def mark_graded(store: JSONStore, teacher_id: str, assignment_id: str) -> Dict[str, Any]:
    with store.transaction(COLLECTION) as records:
        index = _find_index(records, teacher_id, assignment_id)
        if index == -1:
            raise NotFound()
        record = records[index]
        record["status"] = "graded"
        record["gradedCount"] = record.get("submittedCount") or 0
        return record


def send_reminder(teacher_id: str, assignment_id: str) -> Dict[str, str]:
    # No delivery channel yet; acknowledge only.
    logger.info("Reminder requested by teacher %s for assignment %s", teacher_id, assignment_id)
    return {"message": "Reminder triggered"}
