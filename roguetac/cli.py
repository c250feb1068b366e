"""
RogueTac CLI - Command-line interface for the engine.

Usage:
    roguetac play                  Play in the terminal
    roguetac simulate              Autoplay runs with a random player
    roguetac serve                 Run the REST API with uvicorn
"""

import argparse
import logging
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="RogueTac - Roguelike Tic-Tac-Toe Engine",
        prog="roguetac",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play in the terminal")
    _add_engine_arguments(play_parser)

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Autoplay runs with a random player")
    _add_engine_arguments(simulate_parser)
    simulate_parser.add_argument("--runs", type=int, default=10, help="Number of runs")
    simulate_parser.add_argument("--max-floor", type=int, default=10, help="Stop a run after this floor")
    simulate_parser.add_argument("--max-moves", type=int, default=2000, help="Safety limit per run")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")
    serve_parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "play":
        cmd_play(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def _add_engine_arguments(parser):
    parser.add_argument("--mode", choices=["classic", "score"], help="Game mode")
    parser.add_argument("--seed", type=int, help="RNG seed")
    parser.add_argument("--score-to-win", type=int, help="Score-mode threshold")
    parser.add_argument("--boss-interval", type=int, help="Boss every N floors")


def _engine_config(args):
    """EngineConfig from the environment, overridden by command-line flags."""
    from .config import EngineConfig, GameMode
    from .rules.validation import ConfigurationError

    overrides = {}
    if args.mode:
        overrides["mode"] = GameMode(args.mode)
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.score_to_win is not None:
        overrides["score_to_win"] = args.score_to_win
    if args.boss_interval is not None:
        overrides["boss_interval"] = args.boss_interval

    try:
        return EngineConfig.from_env(**overrides)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)


PLAY_HELP = """Commands:
  <n>              place your mark on cell n
  card <id>        arm a card (ERASE, SWAP, SHIELD)
  t <n>            target cell n with the armed card
  clear            disarm the armed card
  reward <n>       choose reward option n
  restart          restart the run from floor 1
  rematch          replay the floor after a draw
  help             show this help
  quit             leave"""


def cmd_play(args):
    """Interactive terminal game."""
    from .session import GameLoop

    loop = GameLoop(config=_engine_config(args))
    loop.start_run()
    print(PLAY_HELP)

    while True:
        _print_state(loop)
        try:
            line = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not line:
            continue
        if line in ("q", "quit", "exit"):
            break
        if line in ("h", "help", "?"):
            print(PLAY_HELP)
            continue

        result = _run_command(loop, line)
        if result is None:
            print("Unknown command. Type 'help'.")
            continue
        if not result.success:
            print(f"! {result.error} [{result.error_code.value if result.error_code else 'ERROR'}]")
            continue

        for change in result.state_changes:
            print(f"  {change}")

        # The terminal has no animation; the opponent replies at once
        for change in loop.flush().state_changes:
            print(f"  {change}")


def _run_command(loop, line):
    parts = line.split()
    verb = parts[0].lower()

    if verb.isdigit():
        return loop.play_move(int(verb))
    if verb == "card" and len(parts) == 2:
        return loop.arm_card(parts[1])
    if verb in ("t", "target") and len(parts) == 2 and parts[1].isdigit():
        return loop.target_cell(int(parts[1]))
    if verb == "clear":
        return loop.clear_card_selection()
    if verb == "reward" and len(parts) == 2 and parts[1].isdigit():
        return loop.choose_reward(int(parts[1]))
    if verb == "restart":
        return loop.restart_run()
    if verb == "rematch":
        return loop.rematch()
    return None


def _print_state(loop):
    from .engine_core.board import render

    state = loop.state
    snapshot = loop.snapshot()
    fight = state.fight

    boss = " (BOSS)" if snapshot.encounter["is_boss"] else ""
    passives = ", ".join(snapshot.encounter["passives"])
    print()
    print(f"Floor {snapshot.floor} - {snapshot.encounter['name']}{boss} [{passives}]")
    if snapshot.scores is not None:
        print(f"Score X {snapshot.scores['X']} - O {snapshot.scores['O']} (first to {snapshot.score_to_win})")
    print(render(fight.board, fight.size, fight.locks))
    if snapshot.locks:
        print("Locked: " + ", ".join(f"{i}({t})" for i, t in sorted(snapshot.locks.items())))

    hand = "  ".join(f"{c['card_id']} {c['charges']}/{c['max_charges']}" for c in snapshot.hand)
    print(f"Energy {snapshot.energy}/{snapshot.max_energy}   Hand: {hand}")
    if snapshot.pending_card:
        print(f"Armed: {snapshot.pending_card['card_id']} targets {snapshot.pending_card['targets']}")

    if snapshot.phase == "reward":
        print("Floor cleared! Choose a reward:")
        for option in snapshot.reward_options:
            print(f"  reward {option['index']}: {option['label']}")
    elif snapshot.phase == "gameover":
        print("Defeated. Type 'restart' to try again.")
    elif snapshot.phase == "draw":
        print("Draw. Type 'rematch' to replay the floor.")


def cmd_simulate(args):
    """Autoplay runs: random player moves, first reward option."""
    import random

    from .bots import RandomPolicy
    from .engine_core.state import GamePhase, OPPONENT_SYMBOL, PLAYER_SYMBOL
    from .session import GameLoop

    config = _engine_config(args)
    policy = RandomPolicy(seed=config.seed)
    floors_reached = []

    print(f"Simulating {args.runs} run(s) in {config.mode.value} mode...")

    for run in range(args.runs):
        seed = None if config.seed is None else config.seed + run
        loop = GameLoop(config=config, rng=random.Random(seed))
        loop.start_run()
        moves = 0

        while moves < args.max_moves:
            state = loop.state
            if state.phase == GamePhase.GAMEOVER:
                break
            if state.phase == GamePhase.REWARD:
                if state.floor >= args.max_floor:
                    break
                loop.choose_reward(0)
                continue
            if state.phase == GamePhase.DRAW:
                loop.rematch()
                continue

            fight = state.fight
            decision = policy.select_move(
                fight.board, fight.size, fight.locks, PLAYER_SYMBOL, OPPONENT_SYMBOL
            )
            if decision is None:
                break
            loop.play_move(decision.cell)
            loop.flush()
            moves += 1

        final = loop.state
        floors_reached.append(final.floor)
        print(f"  run {run + 1}: floor {final.floor}, {final.phase.value}, {moves} moves")

    if floors_reached:
        average = sum(floors_reached) / len(floors_reached)
        print(f"\nAverage floor reached: {average:.2f} (best {max(floors_reached)})")


def cmd_serve(args):
    """Run the REST API."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn")
        sys.exit(1)

    uvicorn.run(
        "roguetac.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
