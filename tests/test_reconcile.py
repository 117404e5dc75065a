"""Tests for reconciling imported records with the collection."""

from typing import Any, Dict, List, Tuple

from bgg_collection.database import GameStore
from bgg_collection.importer import Reconciler
from bgg_collection.models import CollectionEntry, ImportedRecord


def record(external_id: int, name: str, **fields: Any) -> ImportedRecord:
    return ImportedRecord(external_id=external_id, name=name, **fields)


class RecordingStore:
    """Store double that records writes in order."""

    def __init__(self):
        self.writes: List[Tuple[str, Any, Dict[str, Any]]] = []
        self._next_id = 100

    def create(self, fields: Dict[str, Any]) -> int:
        self._next_id += 1
        self.writes.append(("create", self._next_id, fields))
        return self._next_id

    def update(self, local_id: int, fields: Dict[str, Any]) -> None:
        self.writes.append(("update", local_id, fields))


class TestReconcileWithStore:
    def test_creates_new_entries(self, store: GameStore) -> None:
        result = Reconciler(store).reconcile(store.list_all(), [record(13, "Catan", year_published=1995)])

        assert (result.created, result.updated) == (1, 0)
        [entry] = store.list_all()
        assert entry.external_id == 13
        assert entry.year_published == 1995
        assert entry.played is False
        assert entry.tier is None

    def test_name_promotion_does_not_duplicate(self, store: GameStore) -> None:
        local_id = store.add_game("Catan")
        store.set_played(local_id, True)

        result = Reconciler(store).reconcile(store.list_all(), [record(13, "CATAN", min_players=3)])

        assert (result.created, result.updated) == (0, 1)
        [entry] = store.list_all()
        assert entry.local_id == local_id
        assert entry.external_id == 13
        assert entry.min_players == 3
        assert entry.played is True

    def test_linked_entry_no_longer_matched_by_name(self, store: GameStore) -> None:
        store.add_game("Catan")
        reconciler = Reconciler(store)
        reconciler.reconcile(store.list_all(), [record(13, "Catan")])

        result = reconciler.reconcile(store.list_all(), [record(14, "Catan")])

        assert (result.created, result.updated) == (1, 0)
        assert sorted(e.external_id for e in store.list_all()) == [13, 14]

    def test_dedup_within_one_run(self, store: GameStore) -> None:
        incoming = [record(13, "Catan", playing_time=60), record(13, "Catan: 5th Edition", playing_time=90)]

        result = Reconciler(store).reconcile(store.list_all(), incoming)

        assert (result.created, result.updated) == (1, 1)
        [entry] = store.list_all()
        assert entry.name == "Catan: 5th Edition"
        assert entry.playing_time == 90

    def test_two_ids_matching_one_manual_name(self, store: GameStore) -> None:
        """The first claims the hand-entered game; the second becomes a new game."""
        store.add_game("Catan")

        result = Reconciler(store).reconcile(store.list_all(), [record(13, "Catan"), record(14, "catan")])

        assert (result.created, result.updated) == (1, 1)
        assert sorted(e.external_id for e in store.list_all()) == [13, 14]

    def test_external_id_match_takes_precedence_over_name(self, store: GameStore) -> None:
        linked = store.create({"name": "Azul", "external_id": 230802})
        manual = store.add_game("Azul Mini")

        result = Reconciler(store).reconcile(store.list_all(), [record(230802, "Azul Mini")])

        assert (result.created, result.updated) == (0, 1)
        assert store.get(linked).name == "Azul Mini"
        assert store.get(manual).external_id is None

    def test_import_leaves_ranking_untouched(self, store: GameStore) -> None:
        local_id = store.create({"name": "Catan", "external_id": 13})
        store.set_tier(local_id, "A")
        store.set_played(local_id, True)
        before = store.get(local_id)

        Reconciler(store).reconcile(store.list_all(), [record(13, "Catan", year_published=1995)])

        after = store.get(local_id)
        assert (after.tier, after.played, after.created_at) == ("A", True, before.created_at)
        assert after.year_published == 1995

    def test_never_deletes(self, store: GameStore) -> None:
        store.add_game("Gloomhaven")
        store.create({"name": "Brass", "external_id": 224517})

        Reconciler(store).reconcile(store.list_all(), [record(13, "Catan")])

        assert sorted(e.name for e in store.list_all()) == ["Brass", "Catan", "Gloomhaven"]

    def test_reimport_is_idempotent(self, store: GameStore) -> None:
        incoming = [record(13, "Catan"), record(822, "Carcassonne")]
        reconciler = Reconciler(store)
        reconciler.reconcile(store.list_all(), incoming)
        before = store.list_all()

        result = reconciler.reconcile(store.list_all(), incoming)

        assert (result.created, result.updated) == (0, 2)
        assert store.list_all() == before


class TestReconcileWriteOrder:
    def test_writes_follow_incoming_order(self) -> None:
        existing = [
            CollectionEntry(local_id=1, name="Catan", external_id=13),
            CollectionEntry(local_id=2, name="Gloomhaven"),
        ]
        store = RecordingStore()

        Reconciler(store).reconcile(existing, [
            record(13, "Catan"),
            record(174430, "gloomhaven"),
            record(822, "Carcassonne"),
        ])

        assert [(op, local_id) for op, local_id, _ in store.writes] == [
            ("update", 1), ("update", 2), ("create", 101),
        ]
        assert "external_id" not in store.writes[0][2]
        assert store.writes[1][2]["external_id"] == 174430
        created = store.writes[2][2]
        assert created["played"] is False
        assert created["tier"] is None
        assert created["tier_rank"] is None

    def test_updates_only_descriptive_fields(self) -> None:
        store = RecordingStore()

        Reconciler(store).reconcile([CollectionEntry(local_id=1, name="Catan", external_id=13)],
                                    [record(13, "Catan")])

        _, _, fields = store.writes[0]
        assert set(fields) == {"name", "year_published", "min_players", "max_players",
                               "playing_time", "thumbnail_url"}
