"""
Reconciliation of imported BGG records with the local collection.

Each incoming record is matched, in this order:

1. by BGG id, against games already linked to BGG;
2. by case-insensitive name, against games entered by hand (no BGG id);
3. otherwise it becomes a new game.

A hand-entered game claimed by name gains the BGG id and is from then on
matched by id only, so re-importing never duplicates a game.
"""

import logging
from typing import Dict, Iterable, Sequence

from ..models import CollectionEntry, ImportedRecord, ReconcileResult

logger = logging.getLogger(__name__)


class Reconciler:
    """Merges ImportedRecords into a store without creating duplicates."""

    def __init__(self, store):
        """
        Args:
            store: Record store with ``create(fields) -> local_id`` and
                ``update(local_id, fields)`` (e.g. GameStore)
        """
        self.store = store

    def reconcile(self, existing: Iterable[CollectionEntry],
                  incoming: Sequence[ImportedRecord]) -> ReconcileResult:
        """
        Merge ``incoming`` into the collection described by ``existing``.

        The lookup maps are updated as records are processed, so a later
        record sees what an earlier one in the same run created or linked.
        Store writes happen in the same order as the map updates.
        """
        by_external_id: Dict[int, CollectionEntry] = {}
        by_name: Dict[str, CollectionEntry] = {}
        for entry in existing:
            if entry.external_id is not None:
                by_external_id[entry.external_id] = entry
            else:
                by_name[entry.name.lower()] = entry

        result = ReconcileResult()

        for record in incoming:
            fields = record.fields()

            entry = by_external_id.get(record.external_id)
            if entry is not None:
                self.store.update(entry.local_id, fields)
                entry.name = record.name
                result.updated += 1
                continue

            name_key = record.name.lower()
            entry = by_name.get(name_key)
            if entry is not None:
                self.store.update(entry.local_id, dict(fields, external_id=record.external_id))
                logger.info(f"Linked '{entry.name}' (game {entry.local_id}) to BGG id {record.external_id}")
                del by_name[name_key]
                entry.external_id = record.external_id
                entry.name = record.name
                by_external_id[record.external_id] = entry
                result.updated += 1
                continue

            local_id = self.store.create(dict(
                fields,
                external_id=record.external_id,
                played=False,
                tier=None,
                tier_rank=None,
            ))
            by_external_id[record.external_id] = CollectionEntry(
                local_id=local_id,
                external_id=record.external_id,
                **fields
            )
            result.created += 1

        logger.info(f"Reconciled {len(incoming)} records: {result.created} created, {result.updated} updated")
        return result
