#!/usr/bin/env python3
"""
Offline coverage path synthesis from a saved map and a coverage ordering.

    python -m tide_coverage.plan_offline map.yaml order.json --start 1.0 2.0 0.0

order.json holds {"cells": [[x, y], ...], "turn_hints": ["cw", "ccw", ...]}
in tile coordinates of the grid this tool discretizes. Use --print-grid to see
that grid (row 0 printed last, '#' occupied, 'S' start tile).
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Sequence

from .costmap import COVERAGE_COST
from .coverage_path import build_path, make_pose
from .grid_discretizer import DiscretizedGrid, discretize
from .map_io import load_map_yaml
from .waypoint_synthesizer import TurnHintsExhaustedError, synthesize

log = logging.getLogger("tide_coverage.plan_offline")


def load_order(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        order = json.load(handle)
    if isinstance(order, list):
        # Bare list of cells, no reversals expected
        order = {"cells": order}
    return {"cells": list(order.get("cells") or []), "turn_hints": list(order.get("turn_hints") or [])}


def render_grid(dg: DiscretizedGrid) -> str:
    lines: List[str] = []
    sx, sy = dg.scaled_start
    for iy in range(dg.rows - 1, -1, -1):
        row = []
        for ix in range(dg.cols):
            if (ix, iy) == (sx, sy):
                row.append("S")
            else:
                row.append("#" if dg.grid[iy, ix] else ".")
        lines.append("".join(row))
    return "\n".join(lines)


def _cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Synthesize a coverage path from a map and a tile ordering")
    parser.add_argument("map", help="map_server style map.yaml")
    parser.add_argument("order", help="JSON file with cells and turn_hints")
    parser.add_argument("--tile-size", type=float, default=0.3, help="Requested tile edge in meters")
    parser.add_argument(
        "--start",
        type=float,
        nargs=3,
        metavar=("X", "Y", "YAW"),
        default=(0.0, 0.0, 0.0),
        help="Robot start pose in the map frame",
    )
    parser.add_argument("--lethal-cost", type=int, default=COVERAGE_COST, help="Cells above this cost block a tile")
    parser.add_argument("--frame", default="map", help="Frame id of the output poses")
    parser.add_argument("--output", help="Write the path JSON here instead of stdout")
    parser.add_argument("--print-grid", action="store_true", help="Print the tile grid to stderr")
    args = parser.parse_args(argv)

    try:
        occupancy = load_map_yaml(args.map)
    except (ValueError, FileNotFoundError) as e:
        log.error("%s", e)
        return 1
    start = make_pose(args.start[0], args.start[1], args.start[2], frame_id=args.frame)
    dg = discretize(occupancy, args.tile_size, start, lethal_cost=args.lethal_cost)
    if dg is None:
        log.error("Map %s is empty", args.map)
        return 1
    if args.print_grid:
        print(render_grid(dg), file=sys.stderr)

    log.info("Start tile %s, yaw %.3f rad", dg.scaled_start, dg.start_yaw)

    try:
        order = load_order(args.order)
        poses = synthesize(start, order["cells"], order["turn_hints"], dg.geometry, frame_id=args.frame)
    except (TurnHintsExhaustedError, ValueError, FileNotFoundError) as e:
        log.error("%s", e)
        return 1

    payload: Dict[str, Any] = {"poses": [], "frame": args.frame}
    if poses:
        payload = build_path(poses).to_simple_dict()
    text = json.dumps(payload, indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as handle:
            handle.write(text + "\n")
        log.info("Wrote %d poses to %s", len(payload["poses"]), args.output)
    else:
        print(text)
    return 0


def main() -> None:
    logging.basicConfig(level=os.environ.get("LOG", "INFO"))
    sys.exit(_cli())


if __name__ == "__main__":
    main()
