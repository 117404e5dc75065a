"""
Main CLI entry point for the BGG collection package.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..config import DATABASE_PATH, TIERS
from ..database import GameStore
from ..error_handling import StoreError
from ..importer import CollectionImporter
from ..logging_config import setup_logging

logger = logging.getLogger(__name__)


def _print_header(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def cmd_import(store: GameStore, args: argparse.Namespace) -> int:
    importer = CollectionImporter(store)

    def report_batch(index: int, total: int) -> None:
        print(f"Fetching game details (batch {index} of {total})...")

    print(f"Fetching collection for {args.username.strip()}...")
    result = importer.run(args.username, on_batch=report_batch)

    _print_header("IMPORT RESULTS")
    if not result.success:
        print(f"✗ FAILED | {result.error_message}")
        return 1
    print(f"✓ SUCCESS | {result.username}")
    print(f"  Imported: {result.created}  |  Updated: {result.updated}  |  Batches: {result.batch_count}")
    print(f"  Took {result.processing_time:.1f}s")
    return 0


def cmd_list(store: GameStore, args: argparse.Namespace) -> int:
    games = store.list_all()
    if args.tier:
        games = [g for g in games if g.tier == args.tier]
    if args.unplayed:
        games = [g for g in games if not g.played]

    _print_header("COLLECTION")
    if not games:
        print("No games found.")
        return 0
    for game in games:
        played = "✓" if game.played else " "
        tier = game.tier or "-"
        bgg = f"BGG {game.external_id}" if game.external_id is not None else "manual"
        year = f" ({game.year_published})" if game.year_published else ""
        print(f"[{played}] {game.local_id:>5}  {tier}  {game.name}{year}  [{bgg}]")
    print(f"\nTotal: {len(games)}")
    return 0


def cmd_add(store: GameStore, args: argparse.Namespace) -> int:
    local_id = store.add_game(args.name)
    print(f"Added game {local_id}: {args.name.strip()}")
    return 0


def cmd_rename(store: GameStore, args: argparse.Namespace) -> int:
    store.rename_game(args.id, args.name)
    print(f"Renamed game {args.id} to {args.name.strip()}")
    return 0


def cmd_played(store: GameStore, args: argparse.Namespace) -> int:
    store.set_played(args.id, not args.unset)
    print(f"Marked game {args.id} as {'not played' if args.unset else 'played'}")
    return 0


def cmd_tier(store: GameStore, args: argparse.Namespace) -> int:
    tier = None if args.tier.lower() == "none" else args.tier.upper()
    store.set_tier(args.id, tier)
    print(f"Game {args.id} is now {'unranked' if tier is None else 'in tier ' + tier}")
    return 0


def cmd_delete(store: GameStore, args: argparse.Namespace) -> int:
    store.delete(args.id)
    print(f"Deleted game {args.id}")
    return 0


def cmd_roll(store: GameStore, args: argparse.Namespace) -> int:
    game, used_fallback = store.pick_random_game(prefer_unplayed=args.prefer_unplayed)

    _print_header("RANDOM PICK")
    if game is None:
        print("Your collection is empty. Add or import some games first.")
        return 0
    if used_fallback:
        print("No unplayed games left. Picking from all games.")
    print(f"Play this: {game.name} (game {game.local_id})")

    if args.mark_played:
        store.set_played(game.local_id, True)
        print(f"Marked game {game.local_id} as played")
    return 0


def cmd_stats(store: GameStore, args: argparse.Namespace) -> int:
    stats = store.get_statistics()
    _print_header("COLLECTION STATISTICS")
    print(f"Total games: {stats.get('total_games', 0)}")
    print(f"  - Linked to BGG: {stats.get('linked_to_bgg', 0)}  |  Manual only: {stats.get('manual_only', 0)}")
    print(f"Played: {stats.get('played', 0)}")
    tiers = stats.get('tiers', {})
    print("Tiers: " + "  ".join(f"{tier}: {tiers.get(tier, 0)}" for tier in TIERS))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage a board game collection imported from BGG")
    parser.add_argument("--db", type=Path, default=DATABASE_PATH, help="Database file path")
    parser.add_argument("--log-file", type=str, default=None, help="Custom log file name or absolute path")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("import", help="Import the games a BGG user owns")
    p.add_argument("username", help="BGG username")
    p.set_defaults(func=cmd_import)

    p = subparsers.add_parser("list", help="List games in the collection")
    p.add_argument("--tier", choices=TIERS, default=None, help="Only games in this tier")
    p.add_argument("--unplayed", action="store_true", help="Only games not yet played")
    p.set_defaults(func=cmd_list)

    p = subparsers.add_parser("add", help="Add a game by hand")
    p.add_argument("name")
    p.set_defaults(func=cmd_add)

    p = subparsers.add_parser("rename", help="Rename a game")
    p.add_argument("id", type=int)
    p.add_argument("name")
    p.set_defaults(func=cmd_rename)

    p = subparsers.add_parser("played", help="Mark a game as played")
    p.add_argument("id", type=int)
    p.add_argument("--unset", action="store_true", help="Mark as not played instead")
    p.set_defaults(func=cmd_played)

    p = subparsers.add_parser("tier", help="Place a game in a tier (S, A, B, C, D or none)")
    p.add_argument("id", type=int)
    p.add_argument("tier")
    p.set_defaults(func=cmd_tier)

    p = subparsers.add_parser("delete", help="Delete a game")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_delete)

    p = subparsers.add_parser("roll", help="Pick a random game to play")
    p.add_argument("--prefer-unplayed", action="store_true", help="Pick among unplayed games when possible")
    p.add_argument("--mark-played", action="store_true", help="Mark the picked game as played")
    p.set_defaults(func=cmd_roll)

    p = subparsers.add_parser("stats", help="Show collection statistics")
    p.set_defaults(func=cmd_stats)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Build a default per-run log filename when not provided
    if args.log_file:
        log_file = args.log_file
    else:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = f"run_{ts}_{args.command}.log"
    setup_logging(log_file, level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        store = GameStore(args.db)
        return args.func(store, args)
    except StoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nProcess interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Unexpected error in main: {e}")
        raise


if __name__ == "__main__":
    sys.exit(main())
