"""
Tests for turn rotation.
"""

from ..engine_core.state import TeamId
from ..engine_core.action import Action
from ..engine_core.reducer import apply_action
from ..engine_core.setup import setup_game
from ..engine_core.turns import first_turn, next_turn


def rotation(state, turns):
    """Active player ids for the next `turns` end_turn calls."""
    order = [state.active_player_id]
    for _ in range(turns):
        state = next_turn(state)
        order.append(state.active_player_id)
    return order


class TestFirstTurn:
    """Tests for who opens the game."""

    def test_team_a_seat_zero(self, roster):
        """Turn 1 goes to the first player of team A."""
        state = setup_game(roster["team_a"], roster["team_b"], random_seed=1)

        assert state.turn_number == 1
        assert state.turn.active_team == TeamId.A
        assert state.active_player_id == "a1"

    def test_single_player_team(self, roster):
        """A one-player team points its cursor back at itself."""
        state = setup_game([{"id": "solo"}], roster["team_b"], random_seed=1)

        turn = first_turn(state)

        assert turn.cursors == {TeamId.A: 0, TeamId.B: 0}


class TestNextTurn:
    """Tests for round-robin rotation."""

    def test_teams_alternate(self, battle_state):
        """A and B take turns, each walking its roster."""
        assert rotation(battle_state, 4) == ["a1", "b1", "a2", "b2", "a1"]

    def test_turn_number_increments(self, battle_state):
        """Every call advances turn_number by one."""
        state = next_turn(next_turn(battle_state))

        assert state.turn_number == 3

    def test_uneven_teams(self):
        """The smaller team cycles faster; teams still alternate."""
        state = setup_game(
            [{"id": "a1"}, {"id": "a2"}, {"id": "a3"}],
            [{"id": "b1"}],
            random_seed=3,
        )

        assert rotation(state, 6) == ["a1", "b1", "a2", "b1", "a3", "b1", "a1"]

    def test_every_player_gets_a_turn(self, battle_state):
        """Nobody is skipped over a full cycle."""
        order = rotation(battle_state, 3)

        assert set(order) == {"a1", "a2", "b1", "b2"}

    def test_end_turn_uses_rotation(self, battle_state):
        """end_turn hands over to the next player in rotation."""
        state = battle_state
        seen = []
        for _ in range(4):
            state = apply_action(state, Action.end_turn()).new_state
            seen.append(state.active_player_id)

        assert seen == ["b1", "a2", "b2", "a1"]
        assert state.turn_number == 5

    def test_new_state_returned(self, battle_state):
        """The input state is not modified."""
        next_turn(battle_state)

        assert battle_state.turn_number == 1
        assert battle_state.active_player_id == "a1"
