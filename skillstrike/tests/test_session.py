"""
Tests for the session layer.

Tests:
- Game lifecycle through SessionManager
- Optimistic version checks
- Per-game serialization under threads
- JSON file persistence
"""

from dataclasses import replace
import threading

import pytest

from ..engine_core.state import CardType, TeamId
from ..engine_core.action import Action, ErrorCode
from ..session import (
    SessionManager,
    InMemoryGameStore,
    JsonFileGameStore,
    GameNotFoundError,
    VersionConflictError,
)
from ..session.manager import CODE_ALPHABET, CODE_LENGTH


def rig_game(manager, record, player_id, hand, **team_changes):
    """Store a copy of the game with a chosen hand (and team tweaks)."""
    state = record.state.with_hand(player_id, hand)
    for team_id, changes in team_changes.items():
        team_id = TeamId(team_id)
        state = state.with_team(team_id, state.team(team_id)._copy_with(**changes))
    return manager.store.save(replace(record, state=state))


def run_together(target, args_list):
    """Start one thread per args tuple behind a shared barrier."""
    barrier = threading.Barrier(len(args_list))

    def worker(*args):
        barrier.wait()
        target(*args)

    threads = [threading.Thread(target=worker, args=args) for args in args_list]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


class TestSessionManager:
    """Tests for SessionManager."""

    @pytest.fixture
    def manager(self):
        return SessionManager()

    @pytest.fixture
    def record(self, manager, roster):
        return manager.create_game(roster["team_a"], roster["team_b"], random_seed=21)

    def test_create_game(self, record):
        """New games are active, versioned and have a join code."""
        assert record.status == "active"
        assert record.version == 1
        assert len(record.code) == CODE_LENGTH
        assert set(record.code) <= set(CODE_ALPHABET)
        assert record.state.game_id == record.game_id

    def test_create_rejects_empty_team(self, manager, roster):
        """Roster errors surface as ValueError."""
        with pytest.raises(ValueError):
            manager.create_game(roster["team_a"], [])

    def test_get_missing_game(self, manager):
        """Unknown ids raise GameNotFoundError."""
        with pytest.raises(GameNotFoundError):
            manager.get_game("nope")

    def test_accepted_action_bumps_version(self, manager, record):
        """Each accepted action stores a new version."""
        outcome = manager.apply_action(record.game_id, Action.end_turn())

        assert outcome.result.success
        assert outcome.record.version == 2
        assert manager.get_game(record.game_id).state.active_player_id == "b1"

    def test_rejected_action_keeps_version(self, manager, record):
        """Rejected actions are not stored."""
        outcome = manager.apply_action(record.game_id, Action.end_turn("b1"))

        assert outcome.result.error_code == ErrorCode.NOT_YOUR_TURN
        assert outcome.record.version == 1
        assert manager.get_game(record.game_id).version == 1

    def test_stale_expected_version(self, manager, record):
        """A caller holding an old version is refused."""
        manager.apply_action(record.game_id, Action.end_turn())

        with pytest.raises(VersionConflictError) as exc:
            manager.apply_action(record.game_id, Action.end_turn(), expected_version=1)

        assert exc.value.expected == 1
        assert exc.value.actual == 2

    def test_matching_expected_version(self, manager, record):
        """The current version is accepted."""
        outcome = manager.apply_action(record.game_id, Action.end_turn(), expected_version=1)

        assert outcome.record.version == 2

    def test_game_over_marks_record_ended(self, manager, record, card):
        """The record is closed when a team runs out of hp."""
        rig_game(manager, record, "a1", [card("big", CardType.ATTACK, damage=9)], b={"hp": 4})

        manager.apply_action(record.game_id, Action.play_attack("a1", "big"))
        outcome = manager.apply_action(record.game_id, Action.resolve_attack(success=False))

        assert outcome.record.status == "ended"
        assert outcome.record.ended_at is not None
        assert outcome.record.state.winner == TeamId.A

        after = manager.apply_action(record.game_id, Action.end_turn())
        assert after.result.error_code == ErrorCode.GAME_OVER

    def test_end_game(self, manager, record):
        """Removing a game makes it unknown."""
        assert manager.end_game(record.game_id)
        assert not manager.end_game(record.game_id)
        with pytest.raises(GameNotFoundError):
            manager.get_game(record.game_id)

    def test_unknown_ids_leave_no_locks(self, manager, record):
        """Actions on unknown games raise without growing the lock table."""
        for i in range(100):
            with pytest.raises(GameNotFoundError):
                manager.apply_action(f"nope{i}", Action.end_turn())
        assert not manager.end_game("nope0")

        manager.apply_action(record.game_id, Action.end_turn())
        assert list(manager._locks) == [record.game_id]

        manager.end_game(record.game_id)
        assert manager._locks == {}

    def test_list_games(self, manager, roster):
        """Listing returns stored games up to the limit."""
        ids = [
            manager.create_game(roster["team_a"], roster["team_b"], random_seed=i).game_id
            for i in range(3)
        ]

        assert {r.game_id for r in manager.list_games()} == set(ids)
        assert len(manager.list_games(limit=2)) == 2

    def test_concurrent_effects_respect_cap(self, manager, record, card):
        """Racing play_effect calls never exceed the per-turn cap."""
        shields = [card(f"s{i}", CardType.SHIELD, shield_value=2) for i in range(3)]
        rig_game(manager, record, "a1", shields)
        outcomes = []

        run_together(
            lambda card_id: outcomes.append(
                manager.apply_action(record.game_id, Action.play_effect("a1", card_id))
            ),
            [(c.id,) for c in shields],
        )

        assert [o.result.success for o in outcomes].count(True) == 2
        rejected = [o.result.error_code for o in outcomes if not o.result.success]
        assert rejected == [ErrorCode.MAX_EFFECTS_PER_TURN]
        final = manager.get_game(record.game_id)
        assert len(final.state.team(TeamId.A).effects_in_play) == 2
        assert final.version == 4

    def test_concurrent_resolves_apply_once(self, manager, record, card):
        """Two defenders resolving at once: only one resolution lands."""
        rig_game(manager, record, "a1", [card("hit", CardType.ATTACK, damage=6)])
        manager.apply_action(record.game_id, Action.play_attack("a1", "hit"))
        outcomes = []

        run_together(
            lambda player_id: outcomes.append(
                manager.apply_action(
                    record.game_id, Action.resolve_attack(success=False, player_id=player_id)
                )
            ),
            [("b1",), ("b2",)],
        )

        assert [o.result.success for o in outcomes].count(True) == 1
        assert ErrorCode.NO_PENDING_ATTACK in [o.result.error_code for o in outcomes]
        assert manager.get_game(record.game_id).state.team(TeamId.B).hp == 44


class TestGameStores:
    """Tests for the storage backends."""

    @pytest.fixture(params=["memory", "json"])
    def store(self, request, tmp_path):
        if request.param == "memory":
            return InMemoryGameStore()
        return JsonFileGameStore(tmp_path / "games")

    @pytest.fixture
    def record(self, store, roster):
        manager = SessionManager(store=store)
        return manager.create_game(roster["team_a"], roster["team_b"], random_seed=2)

    def test_insert_and_get(self, store, record):
        """Stored games come back intact."""
        loaded = store.get(record.game_id)

        assert loaded.game_id == record.game_id
        assert loaded.code == record.code
        assert loaded.state.to_dict() == record.state.to_dict()

    def test_get_unknown(self, store):
        """Unknown ids read as None."""
        assert store.get("missing") is None

    def test_save_checks_version(self, store, record):
        """save() refuses a stale expected version."""
        stored = store.save(record, expected_version=1)
        assert stored.version == 2

        with pytest.raises(VersionConflictError):
            store.save(record, expected_version=1)

    def test_save_unknown_game(self, store, record):
        """save() only updates games that exist."""
        store.delete(record.game_id)

        with pytest.raises(GameNotFoundError):
            store.save(record)

    def test_code_in_use(self, store, record):
        """Join codes are looked up across stored games."""
        assert store.code_in_use(record.code)
        assert not store.code_in_use("?????")

    def test_list_recent_newest_first(self, store, record):
        """Newer records list before older ones."""
        newer = replace(record, game_id="newer", created_at=record.created_at + 10)
        store.insert(newer)

        assert [r.game_id for r in store.list_recent()] == ["newer", record.game_id]
        assert [r.game_id for r in store.list_recent(limit=1)] == ["newer"]

    def test_json_store_survives_restart(self, tmp_path, roster):
        """A new store over the same directory sees earlier games."""
        store_dir = tmp_path / "games"
        manager = SessionManager(store=JsonFileGameStore(store_dir))
        record = manager.create_game(roster["team_a"], roster["team_b"], random_seed=2)
        manager.apply_action(record.game_id, Action.end_turn())

        reopened = SessionManager(store=JsonFileGameStore(store_dir))
        loaded = reopened.get_game(record.game_id)

        assert loaded.version == 2
        assert loaded.state.turn_number == 2
        assert list(store_dir.glob("*.tmp")) == []
