from __future__ import annotations

from typing import Any, List, Mapping

from pydantic.alias_generators import to_camel

from schemas.resume import (
    ID_PREFIXES,
    LIST_FIELDS,
    PERSONAL_FIELDS,
    STYLE_SLOTS,
    ResumeDocument,
    StyleOverrides,
)

_SLOT_NAMES = {name: to_camel(name) for name in StyleOverrides.model_fields}


def assign_ids(document: ResumeDocument) -> ResumeDocument:
    """Number every list item in document order: exp-1, exp-2, edu-1, ..."""
    updates = {
        field: [
            item.model_copy(update={"id": f"{prefix}-{index}"})
            for index, item in enumerate(getattr(document, field), start=1)
        ]
        for field, prefix in ID_PREFIXES.items()
    }
    return document.model_copy(update=updates)


def apply_loss_guard(snapshot: ResumeDocument, revised: ResumeDocument) -> ResumeDocument:
    """
    Merge a model revision back onto the pre-revision snapshot.

    Empty personal-info values fall back to the snapshot field by field. A list
    that came back empty while the snapshot had entries is replaced by the whole
    snapshot list. Surviving items keep their snapshot ids (see restore_ids).
    """
    personal_updates = {
        field: getattr(snapshot.personal_info, field)
        for field in PERSONAL_FIELDS
        if not getattr(revised.personal_info, field)
    }
    updates: dict = {
        "personal_info": revised.personal_info.model_copy(update=personal_updates)
    }
    for field in LIST_FIELDS:
        before = getattr(snapshot, field)
        after = getattr(revised, field)
        if not after and before:
            updates[field] = [item.model_copy(deep=True) for item in before]
        else:
            updates[field] = restore_ids(ID_PREFIXES[field], before, after)
    return revised.model_copy(update=updates)


def apply_manual_edits(current: ResumeDocument, edited: ResumeDocument) -> ResumeDocument:
    """
    Accept a hand-edited document. Unlike a model revision, emptied fields and
    lists are taken as intended; only ids are reconciled with `current`.
    """
    updates = {
        field: restore_ids(ID_PREFIXES[field], getattr(current, field), getattr(edited, field))
        for field in LIST_FIELDS
    }
    return edited.model_copy(update=updates)


def restore_ids(prefix: str, before: List[Any], after: List[Any]) -> List[Any]:
    """
    Give every item in `after` an id consistent with `before`.

    An item that still carries an unclaimed id from `before` keeps it. Items
    with a missing, unknown or duplicate id take the id at the same position in
    `before` if nobody claimed it; the rest get fresh `prefix-N` ids.
    """
    known = {item.id for item in before if item.id}
    assigned: List[Any] = [None] * len(after)
    claimed = set()
    for index, item in enumerate(after):
        if item.id in known and item.id not in claimed:
            assigned[index] = item.id
            claimed.add(item.id)
    for index in range(len(after)):
        if assigned[index] is None and index < len(before):
            candidate = before[index].id
            if candidate and candidate not in claimed:
                assigned[index] = candidate
                claimed.add(candidate)
    taken = known | claimed
    counter = len(before)
    for index in range(len(after)):
        if assigned[index] is None:
            counter += 1
            while f"{prefix}-{counter}" in taken:
                counter += 1
            assigned[index] = f"{prefix}-{counter}"
            taken.add(assigned[index])
    return [item.model_copy(update={"id": new_id}) for item, new_id in zip(after, assigned)]


def merge_styles(current: StyleOverrides, returned: Mapping[str, Any]) -> StyleOverrides:
    """Shallow merge: returned slots win, omitted slots keep their value."""
    merged = current.as_mapping()
    for key, value in returned.items():
        slot = _SLOT_NAMES.get(key, key)
        if slot in STYLE_SLOTS and isinstance(value, str):
            merged[slot] = value
    return StyleOverrides.model_validate(merged)
