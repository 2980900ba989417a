"""Load map_server style maps (map.yaml + grayscale image) into an OccupancyMap."""

from __future__ import annotations

import os
from typing import Any, Dict

import cv2
import numpy as np
import yaml

from .costmap import FREE_SPACE, LETHAL_OBSTACLE, NO_INFORMATION, OccupancyMap

_REQUIRED_KEYS = ("image", "resolution")


def load_map_meta(yaml_path: str) -> Dict[str, Any]:
    with open(yaml_path, "r", encoding="utf-8") as f:
        meta = yaml.safe_load(f) or {}
    missing = [k for k in _REQUIRED_KEYS if k not in meta]
    if missing:
        raise ValueError(f"{yaml_path}: missing map keys {missing}")
    return meta


def costs_from_image(img: np.ndarray, meta: Dict[str, Any]) -> np.ndarray:
    """
    Trinary interpretation of a grayscale map image.

    White (255) is free, black (0) is occupied; `negate` swaps them. Row 0 of
    the result is the bottom of the map (image row 0 is the top).
    """
    occupancy = img.astype(np.float64) / 255.0
    if not int(meta.get("negate", 0)):
        occupancy = 1.0 - occupancy
    occupied_thresh = float(meta.get("occupied_thresh", 0.65))
    free_thresh = float(meta.get("free_thresh", 0.196))

    costs = np.full(img.shape, NO_INFORMATION, dtype=np.uint8)
    costs[occupancy > occupied_thresh] = LETHAL_OBSTACLE
    costs[occupancy < free_thresh] = FREE_SPACE
    return np.flipud(costs).copy()


def load_map_yaml(yaml_path: str) -> OccupancyMap:
    meta = load_map_meta(yaml_path)
    img_path = os.path.join(os.path.dirname(yaml_path), str(meta["image"]))
    img = cv2.imread(img_path, cv2.IMREAD_GRAYSCALE)
    if img is None:
        raise FileNotFoundError(f"Cannot read map image {img_path}")
    origin = list(meta.get("origin", [0.0, 0.0, 0.0]))
    return OccupancyMap(
        costs=costs_from_image(img, meta),
        resolution=float(meta["resolution"]),
        origin_x=float(origin[0]),
        origin_y=float(origin[1]),
    )
