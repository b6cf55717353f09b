"""Tests for the sparse grid store and its host bookkeeping."""

import pytest

from .errors import AlreadyOccupied
from .grid import GridStore
from .host import NullHost
from .types import AxialCoord, SerializedTileEntry, StackingPolicy


class FailingHost(NullHost):
    """NullHost that fails to destroy one particular content id."""

    def __init__(self, fail_content: str) -> None:
        super().__init__()
        self.fail_content = fail_content

    def destroy(self, handle: int) -> None:
        if self.live.get(handle) == self.fail_content:
            raise RuntimeError(f"cannot destroy {handle}")
        super().destroy(handle)


class RefusingHost(NullHost):
    """NullHost that refuses to instantiate one particular content id."""

    def __init__(self, refuse_content: str) -> None:
        super().__init__()
        self.refuse_content = refuse_content

    def instantiate(self, content_id: str) -> int:
        if content_id == self.refuse_content:
            raise RuntimeError(f"cannot instantiate {content_id}")
        return super().instantiate(content_id)


def _populated(host=None):
    """Three cells with 1, 2 and 3 layers."""
    store = GridStore(hex_size=1.0, host=host or NullHost())
    store.place(AxialCoord(0, 0), 0, "floor")
    store.place(AxialCoord(1, 0), 0, "floor")
    store.place(AxialCoord(1, 0), 1, "wall", 60.0)
    store.place(AxialCoord(-2, 3), 0, "floor")
    store.place(AxialCoord(-2, 3), 1, "wall")
    store.place(AxialCoord(-2, 3), 2, "roof", 120.0)
    return store


class TestPlace:
    def test_lazily_creates_stack(self):
        store = GridStore()
        assert AxialCoord(0, 0) not in store
        store.place(AxialCoord(0, 0), 0, "floor")
        assert AxialCoord(0, 0) in store
        assert (0, 0) in store
        assert len(store) == 1

    def test_conflict_leaves_store_unchanged(self):
        host = NullHost()
        store = GridStore(host=host)
        store.place(AxialCoord(0, 0), 0, "floor")
        store.place(AxialCoord(0, 0), 1, "wall")
        with pytest.raises(AlreadyOccupied):
            store.place(AxialCoord(0, 0), 1, "tower")
        assert len(store.records_at(AxialCoord(0, 0))) == 2
        assert host.instantiate_calls == 2

    def test_rejected_new_cell_leaves_no_empty_stack(self):
        store = GridStore()
        with pytest.raises(ValueError):
            store.place(AxialCoord(5, 5), -1, "floor")
        assert len(store) == 0

    def test_height_from_host(self):
        host = NullHost(heights={"floor": 0.3})
        store = GridStore(host=host)
        store.place(AxialCoord(0, 0), 0, "floor")
        wall = store.place(AxialCoord(0, 0), 1, "wall")
        assert wall.world_position.y == pytest.approx(0.3)

    def test_explicit_top_height_overrides_host(self):
        store = GridStore(host=NullHost(heights={"floor": 0.3}))
        store.place(AxialCoord(0, 0), 0, "floor", top_height=1.0)
        wall = store.place(AxialCoord(0, 0), 1, "wall")
        assert wall.world_position.y == pytest.approx(1.0)

    def test_store_stacking_policy(self):
        store = GridStore(
            stacking_policy=StackingPolicy.fixed_offset(0.1),
            host=NullHost(heights={"floor": 0.2}),
        )
        store.place(AxialCoord(0, 0), 0, "floor")
        wall = store.place(AxialCoord(0, 0), 1, "wall")
        assert wall.world_position.y == pytest.approx(0.3)

    def test_hex_size_override(self):
        store = GridStore(hex_size=1.0)
        rec = store.place(AxialCoord(0, 1), 0, "floor", hex_size=2.0)
        assert rec.world_position.z == pytest.approx(3.0)

    def test_instantiate_once_per_record(self):
        host = NullHost()
        store = _populated(host)
        assert host.instantiate_calls == 6
        handles = {rec.handle for _, rec in store.iter_records()}
        assert handles == set(host.live)

    @pytest.mark.parametrize(
        "kwargs",
        [{"hex_size": 0.0}, {"rotation_deg": "x"}, {"hex_size": -2.0}],
    )
    def test_invalid_arguments_create_no_handle(self, kwargs):
        host = NullHost()
        store = GridStore(host=host)
        with pytest.raises(ValueError):
            store.place(AxialCoord(0, 0), 0, "floor", **kwargs)
        assert host.live == {}
        assert host.instantiate_calls == 0
        assert len(store) == 0

    def test_instantiate_failure_rolls_back(self):
        host = RefusingHost("wall")
        store = GridStore(host=host)
        store.place(AxialCoord(0, 0), 0, "floor")
        with pytest.raises(RuntimeError):
            store.place(AxialCoord(0, 0), 1, "wall")
        with pytest.raises(RuntimeError):
            store.place(AxialCoord(3, 3), 0, "wall")
        assert [r.content_id for r in store.records_at((0, 0))] == ["floor"]
        assert AxialCoord(3, 3) not in store
        assert len(host.live) == store.record_count() == 1
        # The layer is free again after the rollback.
        store.place(AxialCoord(0, 0), 1, "roof")
        assert store.record_count() == 2


class TestRemove:
    def test_remove_absent_is_noop(self):
        store = _populated()
        assert store.remove(AxialCoord(50, 50)) == []
        assert store.record_count() == 6

    def test_remove_whole_stack(self):
        host = NullHost()
        store = _populated(host)
        removed = store.remove(AxialCoord(-2, 3))
        assert sorted(r.content_id for r in removed) == [
            "floor",
            "roof",
            "wall",
        ]
        assert AxialCoord(-2, 3) not in store
        assert host.destroy_calls == 3
        assert len(host.live) == 3

    def test_remove_layer_drops_empty_stack(self):
        store = GridStore()
        store.place(AxialCoord(0, 0), 0, "floor")
        store.place(AxialCoord(0, 0), 1, "wall")
        assert store.remove_layer(AxialCoord(0, 0), 1).content_id == "wall"
        assert AxialCoord(0, 0) in store
        store.remove_layer(AxialCoord(0, 0), 0)
        assert AxialCoord(0, 0) not in store
        assert store.remove_layer(AxialCoord(0, 0), 0) is None

    def test_clear_all(self):
        host = NullHost()
        store = _populated(host)
        destroyed = store.clear_all()
        assert len(destroyed) == 6
        assert len(store) == 0
        assert store.record_count() == 0
        assert host.live == {}

    def test_clear_empty_store(self):
        assert GridStore().clear_all() == []

    def test_host_failure_keeps_bookkeeping_consistent(self):
        """Records the host destroyed are gone; the rest remain."""
        host = FailingHost("wall")
        store = _populated(host)
        coord = AxialCoord(-2, 3)
        with pytest.raises(RuntimeError):
            store.remove(coord)
        remaining = store.records_at(coord)
        assert [r.content_id for r in remaining] == ["wall", "roof"]
        for rec in remaining:
            assert rec.handle in host.live

    def test_host_failure_on_last_cell_keeps_stack(self):
        host = FailingHost("floor")
        store = GridStore(host=host)
        store.place(AxialCoord(0, 0), 0, "floor")
        with pytest.raises(RuntimeError):
            store.clear_all()
        assert AxialCoord(0, 0) in store


class TestRaiseLower:
    def test_absent_is_noop(self):
        store = _populated()
        assert store.raise_lower(AxialCoord(9, 9), 1.0) == 0

    def test_round_trip_restores_heights(self):
        store = _populated(NullHost(heights={"floor": 0.2, "wall": 1.0}))
        coord = AxialCoord(-2, 3)
        before = [
            (r.world_position, r.rotation_deg) for r in store.records_at(coord)
        ]
        assert store.raise_lower(coord, 0.7) == 3
        store.raise_lower(coord, -0.7)
        after = store.records_at(coord)
        for (pos, rot), rec in zip(before, after):
            assert rec.world_position.y == pytest.approx(pos.y)
            assert rec.world_position.x == pos.x
            assert rec.world_position.z == pos.z
            assert rec.rotation_deg == rot

    def test_other_cells_untouched(self):
        store = _populated()
        store.raise_lower(AxialCoord(0, 0), 2.0)
        assert store.records_at(AxialCoord(1, 0))[0].world_position.y == 0.0


class TestSnapshotRestore:
    def test_snapshot_sorted_and_complete(self):
        store = _populated()
        snap = store.snapshot()
        assert len(snap) == 6
        keys = [(e.q, e.r, e.layer) for e in snap]
        assert keys == sorted(keys)

    def test_restore_is_verbatim(self):
        """Persisted positions win over recomputed stacking."""
        store = GridStore(host=NullHost(heights={"floor": 0.5}))
        entries = [
            SerializedTileEntry(0, 0, "floor", 0.0, 0.0, 0.0, 0.0, 0),
            SerializedTileEntry(0, 0, "wall", 60.0, 0.0, 7.25, 0.0, 1),
        ]
        assert store.restore(entries) == []
        wall = store.get_stack(AxialCoord(0, 0)).get(1)
        assert wall.world_position.y == 7.25
        assert wall.rotation_deg == 60.0

    def test_restore_replaces_existing(self):
        host = NullHost()
        store = _populated(host)
        store.restore(
            [SerializedTileEntry(4, 4, "floor", 0.0, 1.0, 0.0, 2.0, 0)]
        )
        assert store.coordinates() == [AxialCoord(4, 4)]
        assert len(host.live) == 1

    def test_restore_skips_unknown_content(self):
        store = GridStore()
        warnings = store.restore(
            [
                SerializedTileEntry(0, 0, "floor", 0.0, 0.0, 0.0, 0.0, 0),
                SerializedTileEntry(1, 0, "lava", 0.0, 0.0, 0.0, 0.0, 0),
            ],
            known_content={"floor"},
        )
        assert len(warnings) == 1
        assert "lava" in warnings[0]
        assert store.coordinates() == [AxialCoord(0, 0)]

    def test_restore_skips_duplicate_layer(self):
        store = GridStore()
        warnings = store.restore(
            [
                SerializedTileEntry(0, 0, "floor", 0.0, 0.0, 0.0, 0.0, 0),
                SerializedTileEntry(0, 0, "stone", 0.0, 0.0, 0.0, 0.0, 0),
            ]
        )
        assert len(warnings) == 1
        assert store.records_at(AxialCoord(0, 0))[0].content_id == "floor"

    def test_invalid_entry_creates_no_handle(self):
        host = NullHost()
        store = GridStore(host=host)
        with pytest.raises(ValueError):
            store.restore(
                [SerializedTileEntry(0, 0, "floor", 0.0, 0.0, 0.0, 0.0, -1)]
            )
        with pytest.raises(ValueError):
            store.restore(
                [SerializedTileEntry(0, 0, "floor", "x", 0.0, 0.0, 0.0, 0)]
            )
        assert host.live == {}
        assert store.record_count() == 0

    def test_instantiate_failure_during_restore(self):
        host = RefusingHost("wall")
        store = GridStore(host=host)
        with pytest.raises(RuntimeError):
            store.restore(
                [
                    SerializedTileEntry(0, 0, "floor", 0.0, 0.0, 0.0, 0.0, 0),
                    SerializedTileEntry(0, 0, "wall", 0.0, 0.0, 0.2, 0.0, 1),
                ]
            )
        assert len(host.live) == store.record_count() == 1
        assert store.get_stack(AxialCoord(0, 0)).layers() == [0]

    def test_snapshot_restore_round_trip(self):
        store = _populated()
        store.raise_lower(AxialCoord(1, 0), 0.6)
        snap = store.snapshot()
        other = GridStore()
        other.restore(reversed(snap))
        assert other.snapshot() == snap
