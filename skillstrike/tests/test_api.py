"""
Tests for API layer.

Tests:
- API service methods
- Request/response serialization
- Error handling
"""

import pytest
from pydantic import ValidationError

from ..api.schemas import (
    ActionRequest,
    CardDefInfo,
    CardDefsRequest,
    CreateGameRequest,
    EndTurnRequest,
    ErrorCode,
    ErrorResponse,
    GameStatus,
    PlayAttackRequest,
    PlayEffectRequest,
    ResolveAttackRequest,
    RosterEntry,
    SettingsUpdateRequest,
)
from ..api.service import APIService
from ..engine_core.action import ErrorCode as EngineErrorCode
from ..engine_core.deck import CardDefinition
from ..engine_core.state import CardType


# Every dealt card is a 4-damage attack
ATTACKS_ONLY = [CardDefinition(id="kick_4", card_type=CardType.ATTACK, category="Kicks", damage=4, copies=40)]


def create_request(**overrides):
    data = {
        "team_a": [RosterEntry(id="a1", name="Ava"), RosterEntry(id="a2", name="Ben")],
        "team_b": [RosterEntry(id="b1", name="Cleo"), RosterEntry(id="b2", name="Dev")],
        "seed": 13,
    }
    data.update(overrides)
    return CreateGameRequest(**data)


def first_card(game, player_id):
    return game.state.hands[player_id][0].id


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def service(self):
        """Create a fresh API service."""
        return APIService(card_definitions=list(ATTACKS_ONLY))

    @pytest.fixture
    def game(self, service):
        return service.create_game(create_request())

    def test_create_game(self, game):
        """A created game is active at version 1."""
        assert game.status == GameStatus.ACTIVE
        assert game.version == 1
        assert game.state.turn.active_player_id == "a1"
        assert game.state.teams["a"].hp == 50
        assert len(game.state.hands["b2"]) == 5

    def test_create_game_hp_override(self, service):
        """hp_start in the request beats the service default."""
        game = service.create_game(create_request(hp_start=30))

        assert game.state.teams["b"].hp == 30
        assert game.state.settings.hp_start == 30

    def test_create_game_empty_team(self, service):
        """An empty roster is a ValueError."""
        with pytest.raises(ValueError):
            service.create_game(create_request(team_b=[]))

    def test_get_game(self, service, game):
        """A stored game can be fetched."""
        response = service.get_game(game.game_id)

        assert response.game_id == game.game_id
        assert response.code == game.code

    def test_get_nonexistent_game(self, service):
        """Getting a nonexistent game returns an error."""
        response = service.get_game("nonexistent-id")

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.GAME_NOT_FOUND

    def test_attack_and_resolve(self, service, game):
        """An accepted attack shows up as the pending attack."""
        card_id = first_card(game, "a1")
        response = service.apply_action(
            game.game_id,
            PlayAttackRequest(action="play_attack", player_id="a1", card_id=card_id, skill_id="jab"),
        )

        assert response.ok
        assert response.game.version == 2
        pending = response.game.state.pending_attack
        assert pending.card.id == card_id
        assert pending.defender_id == "b1"
        assert pending.skill_id == "jab"
        assert response.changes

        response = service.apply_action(
            game.game_id, ResolveAttackRequest(action="resolve_attack", success=False, player_id="b1")
        )

        assert response.game.state.pending_attack is None
        assert response.game.state.teams["b"].hp == 46

    def test_rejected_action(self, service, game):
        """Rejections carry the engine error code and current version."""
        response = service.apply_action(
            game.game_id, EndTurnRequest(action="end_turn", player_id="b1")
        )

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.NOT_YOUR_TURN
        assert response.details == {"version": 1}

    def test_action_on_missing_game(self, service):
        """Actions on unknown games are GAME_NOT_FOUND."""
        response = service.apply_action("missing", EndTurnRequest(action="end_turn"))

        assert response.error_code == ErrorCode.GAME_NOT_FOUND

    def test_version_conflict(self, service, game):
        """A stale expected_version is reported with both versions."""
        service.apply_action(game.game_id, EndTurnRequest(action="end_turn"))

        response = service.apply_action(
            game.game_id, EndTurnRequest(action="end_turn", expected_version=1)
        )

        assert response.error_code == ErrorCode.VERSION_CONFLICT
        assert response.details == {"expected": 1, "actual": 2}

    def test_legal_actions(self, service, game):
        """The active player always has end_turn available."""
        response = service.get_legal_actions(game.game_id, "a1")

        assert response.version == 1
        assert "end_turn" in {a.action for a in response.actions}
        assert service.get_legal_actions(game.game_id, "b1").actions == []

    def test_legal_actions_missing_game(self, service):
        """Unknown games report GAME_NOT_FOUND."""
        response = service.get_legal_actions("missing", "a1")

        assert response.error_code == ErrorCode.GAME_NOT_FOUND

    def test_list_and_end_game(self, service, game):
        """Removed games leave the listing."""
        listing = service.list_games()
        assert listing.count == 1
        assert listing.games[0].game_id == game.game_id

        assert service.end_game(game.game_id)
        assert service.list_games().count == 0

    def test_update_settings_clamps(self, service):
        """Settings are clamped and apply to new games."""
        settings = service.update_settings(SettingsUpdateRequest(hp_start=0, max_effects_in_play=2))

        assert settings.hp_start == 1
        assert settings.max_effects_in_play == 2
        assert settings.max_team_size == 4

        game = service.create_game(create_request())
        assert game.state.teams["a"].hp == 1

    def test_replace_card_defs(self, service):
        """New catalogues are used for games created afterwards."""
        defs = CardDefsRequest(defs=[
            CardDefInfo(id="k", card_type="attack", damage=3, copies=30),
            CardDefInfo(id="n", card_type="negate", copies=-1),
        ])

        response = service.replace_card_defs(defs)

        assert [(d.id, d.copies) for d in response.defs] == [("k", 30), ("n", 0)]
        game = service.create_game(create_request())
        assert all(c.def_id == "k" for c in game.state.hands["a1"])


class TestSchemas:
    """Tests for request parsing."""

    def test_action_union_discriminates(self):
        """The action field picks the request model."""
        parse = ActionRequest.model_validate

        assert isinstance(
            parse({"action": "play_effect", "player_id": "a1", "card_id": "c"}).root,
            PlayEffectRequest,
        )
        assert isinstance(parse({"action": "resolve_attack", "success": True}).root, ResolveAttackRequest)
        assert isinstance(parse({"action": "end_turn"}).root, EndTurnRequest)

    def test_unknown_action(self):
        """Unknown action names fail validation."""
        with pytest.raises(ValidationError):
            ActionRequest.model_validate({"action": "draw"})

    def test_resolve_requires_success(self):
        """resolve_attack needs its outcome."""
        with pytest.raises(ValidationError):
            ResolveAttackRequest(action="resolve_attack")

    def test_negative_shield_value_rejected(self):
        """Catalogue shields cannot carry a negative value."""
        with pytest.raises(ValidationError):
            CardDefInfo(id="s", card_type="shield", shield_value=-3, copies=5)

    def test_error_codes_cover_engine(self):
        """Every engine error code has an API counterpart."""
        api_codes = {c.value for c in ErrorCode}

        assert {c.value for c in EngineErrorCode} <= api_codes
