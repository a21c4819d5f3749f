"""
Skill Strike CLI - Command-line interface for the engine.

Usage:
    skillstrike serve [--host HOST] [--port PORT]   Run the HTTP API
    skillstrike demo [--seed SEED]                  Play a scripted game in-process
"""

import argparse
import sys

from .logging_config import build_log_config, setup_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Skill Strike - Two-team card battle engine",
        prog="skillstrike",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Play a scripted game")
    demo_parser.add_argument("--seed", type=int, default=7, help="Shuffle seed")
    demo_parser.add_argument("--turns", type=int, default=12, help="Max turns to play")

    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "demo":
        cmd_demo(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the API under uvicorn."""
    import uvicorn

    uvicorn.run(
        "skillstrike.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=build_log_config(),
    )


def cmd_demo(args):
    """
    Play a short game where every active player places one effect if
    they can, attacks with their first attack card, and the defender
    alternates between blocking and taking the hit.
    """
    from .engine_core import Action, ActionType, TeamId, legal_actions
    from .session import SessionManager

    setup_logging(level="WARNING")

    manager = SessionManager()
    record = manager.create_game(
        team_a=[{"id": "a1", "name": "Ava"}, {"id": "a2", "name": "Ben"}],
        team_b=[{"id": "b1", "name": "Cleo"}, {"id": "b2", "name": "Dev"}],
        random_seed=args.seed,
    )
    game_id = record.game_id
    print(f"Game {record.code} ({game_id})")

    block = True
    for _ in range(args.turns):
        state = manager.get_game(game_id).state
        if state.is_over:
            break
        player_id = state.active_player_id
        options = legal_actions(state, player_id)

        plan = []
        effect = next((a for a in options if a.action_type == ActionType.PLAY_EFFECT), None)
        if effect:
            plan.append(effect)
        attack = next((a for a in options if a.action_type == ActionType.PLAY_ATTACK), None)
        if attack:
            plan.append(attack)
            plan.append(Action.resolve_attack(success=block))
            block = not block
        plan.append(Action.end_turn(player_id))

        for action in plan:
            outcome = manager.apply_action(game_id, action)
            if not outcome.result.success:
                print(f"  ! {outcome.result.error}")
                continue
            for change in outcome.result.state_changes:
                print(f"  {change}")
            if outcome.record.state.is_over:
                break

    state = manager.get_game(game_id).state
    print(
        f"\nTurn {state.turn_number}: team A hp={state.team(TeamId.A).hp} "
        f"team B hp={state.team(TeamId.B).hp}"
    )
    if state.winner:
        print(f"Team {state.winner.value.upper()} wins")


if __name__ == "__main__":
    main()
