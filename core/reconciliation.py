"""Merge the resources of one day's log into the project's registered-resource catalogue."""
from dataclasses import dataclass
from typing import List, Optional, Tuple

from models.daily_log import Resource
from models.project import RegisteredResource

Signature = Tuple[str, str, str, Optional[str]]


@dataclass
class ReconcileResult:
    updated_catalogue: List[RegisteredResource]
    resources: List[Resource]
    catalogue_changed: bool


def signature(item) -> Signature:
    return (item.type, item.description, item.name, item.company)


def _find_by_signature(catalogue: List[RegisteredResource], sig: Signature) -> Optional[RegisteredResource]:
    for entry in catalogue:
        if signature(entry) == sig:
            return entry
    return None


def reconcile_resources(resources: List[Resource], catalogue: List[RegisteredResource]) -> ReconcileResult:
    """Link every resource to a catalogue entry, creating or updating entries as needed.

    Resources are processed in order against a catalogue that grows as new entries
    are added, so two resources with the same content in one save share one entry.
    Matching uses literal string equality. Entries are never removed here.
    The inputs are left untouched; copies are returned.
    """
    updated = [entry.model_copy() for entry in catalogue]
    by_id = {entry.id: entry for entry in updated}
    linked = []
    changed = False
    # entry id -> content the entry was bound to earlier in this pass
    claimed = {}

    for resource in resources:
        resource = resource.model_copy()
        sig = signature(resource)

        entry = by_id.get(resource.registered_resource_id) if resource.registered_resource_id else None
        if entry is not None and claimed.get(entry.id, sig) != sig:
            entry = None
        if entry is not None:
            owner = _find_by_signature(updated, sig)
            if owner is not None and owner.id != entry.id:
                entry = owner
        if entry is None:
            entry = _find_by_signature(updated, sig)

        if entry is None:
            entry = RegisteredResource(
                type=resource.type,
                description=resource.description,
                name=resource.name,
                company=resource.company,
            )
            updated.append(entry)
            by_id[entry.id] = entry
            changed = True
        elif signature(entry) != sig:
            entry.type = resource.type
            entry.description = resource.description
            entry.name = resource.name
            entry.company = resource.company
            changed = True

        resource.registered_resource_id = entry.id
        claimed[entry.id] = sig
        linked.append(resource)

    return ReconcileResult(updated_catalogue=updated, resources=linked, catalogue_changed=changed)
