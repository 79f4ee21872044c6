"""
Play a dice region session from the command line.

Loads the region CSV, rolls up to three dice (seeded random or fixed
values), prints the remaining regions after every round and optionally
renders the final map to PNG.

Usage:
    python play_session.py --seed 7 --render output/session.png
    python play_session.py --rolls 3 3 2 --roll-seconds 0
"""

import argparse
import asyncio
from pathlib import Path
from typing import List, Optional

import numpy as np

from game_controller import DIE_FACES, GameController
from game_events import OUTCOME_REJECTED, ROUND_RESOLVED
from region_catalog import RegionCatalog
from roll_scheduler import AsyncioScheduler
from utils.config_loader import DEFAULT_CONFIG_PATH, Config
from utils.region_map_renderer import render_regions
from utils.setup_logging import setup_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Narrow down a region with three dice rolls")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to config.yaml")
    parser.add_argument("--csv", type=Path, default=None, help="Region CSV (default: from config)")
    parser.add_argument("--rolls", type=int, nargs="+", default=None, help="Fixed die values, one per round")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for dice")
    parser.add_argument("--roll-seconds", type=float, default=None, help="Minimum roll duration")
    parser.add_argument("--render", type=Path, default=None, help="Write final map to this PNG")
    parser.add_argument("--log-level", default=None, help="Logging level (default: from config)")
    return parser.parse_args(argv)


def print_survivors(snapshot) -> None:
    names = [region.name for region in snapshot.survivors]
    print(f"  Remaining regions: {len(names)}")
    for name in names:
        print(f"    - {name}")
    if snapshot.map_center is not None:
        lat, lon = snapshot.map_center
        print(f"  Map center: ({lat:.4f}, {lon:.4f}) zoom {snapshot.zoom_level}")


async def play(controller: GameController, dice: List[int]) -> None:
    """
    Feed die values to the controller one round at a time.

    Waits for each round to resolve (the controller holds every roll for
    its minimum duration) before starting the next.
    """
    events: asyncio.Queue = asyncio.Queue()
    unsubscribe = controller.subscribe(events.put_nowait)
    try:
        for value in dice:
            if not controller.begin_roll():
                break
            print(f"\n[ROUND {controller.round + 1}] Rolling...")
            if not controller.submit_outcome(value):
                print(f"  ✗ Rejected die value: {value}")
                controller.close()
                break

            while True:
                event = await events.get()
                if event.type == ROUND_RESOLVED:
                    print(f"  ✓ Rolled {event.payload['outcome']}")
                    print_survivors(event.payload["snapshot"])
                    break
                if event.type == OUTCOME_REJECTED:
                    break
    finally:
        unsubscribe()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = Config(args.config)
    setup_logging(args.log_level or config.log_level, config.log_file)

    csv_path = args.csv or config.regions_csv
    catalog = RegionCatalog.from_csv(csv_path, config.catalog_columns)

    print("=" * 60)
    print("DICE REGION PICKER")
    print("=" * 60)
    print(f"Regions: {len(catalog)} loaded from {csv_path}")

    if args.rolls is not None:
        dice = args.rolls[: config.max_rounds]
    else:
        rng = np.random.default_rng(args.seed)
        dice = [int(v) for v in rng.integers(1, DIE_FACES + 1, size=config.max_rounds)]

    options = config.controller_options()
    if args.roll_seconds is not None:
        options["min_roll_seconds"] = args.roll_seconds

    async def run() -> GameController:
        controller = GameController(catalog, scheduler=AsyncioScheduler(), **options)
        try:
            await play(controller, dice)
        finally:
            controller.close()
        return controller

    controller = asyncio.run(run())
    snapshot = controller.snapshot()

    print("\n" + "=" * 60)
    print(f"Outcomes: {list(snapshot.outcomes)}")
    print(f"Result: {controller.copy_survivor_names(config.names_separator) or '(no regions)'}")

    if args.render is not None:
        title = f"Rolls {' '.join(str(o) for o in snapshot.outcomes)}"
        output = render_regions(
            catalog,
            snapshot.survivors,
            args.render,
            focus=snapshot.focus,
            title=title,
            **config.render_options,
        )
        print(f"✓ Saved: {output}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
