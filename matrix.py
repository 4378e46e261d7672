"""
Distance matrix helpers: label/location building, tiled ORS requests and CSV export
"""

import csv
import io
import logging
import math
from pathlib import Path
from typing import Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from config import MATRIX
from pacing import FixedDelay

logger = logging.getLogger(__name__)


class MatrixTileError(RuntimeError):
    """Raised when a tile response carries no usable distances"""

    def __init__(self, row_block: int, col_block: int, detail: str = "no distances in response"):
        self.row_block = row_block
        self.col_block = col_block
        super().__init__(f"ORS matrix failed for tile r={row_block}, c={col_block}: {detail}")


class Tile(NamedTuple):
    row_block: int
    col_block: int
    sources: List[int]
    destinations: List[int]


def build_labels_and_locations(places: Mapping[str, Dict]) -> Tuple[List[str], List[str], List[list]]:
    """
    Split a place_id -> place mapping into ids, labels and [lng, lat] locations.

    Values are passed through as-is, so places without coordinates keep
    their None entries.
    """
    ids = []
    labels = []
    locations = []
    for place_id, place in places.items():
        ids.append(place_id)
        labels.append(place.get('name'))
        locations.append([place.get('lng'), place.get('lat')])
    return ids, labels, locations


def iter_tiles(n: int, tile: int) -> List[Tile]:
    """Partition [0, n) x [0, n) into row-major source/destination blocks"""
    if tile <= 0:
        raise ValueError(f"Tile size must be positive, got {tile}")

    blocks = math.ceil(n / tile)
    tiles = []
    for r in range(blocks):
        row_start = r * tile
        row_end = min(row_start + tile, n)
        for c in range(blocks):
            col_start = c * tile
            col_end = min(col_start + tile, n)
            tiles.append(Tile(r, c, list(range(row_start, row_end)), list(range(col_start, col_end))))
    return tiles


def _invalid_locations(locations: Sequence) -> List[int]:
    bad = []
    for i, loc in enumerate(locations):
        try:
            lng, lat = loc
            if not (math.isfinite(float(lng)) and math.isfinite(float(lat))):
                bad.append(i)
        except (TypeError, ValueError):
            bad.append(i)
    return bad


async def compute_distance_matrix(locations: Sequence[Sequence[float]], client, tile: int = MATRIX['tile'],
                                  pause_ms: float = MATRIX['pause_ms'], pacer=None,
                                  profile: Optional[str] = None) -> List[List[Optional[float]]]:
    """
    Compute the full N x N distance matrix (meters) in tile x tile blocks.

    Every request carries the whole location list plus the source and
    destination index slices of one tile. Tiles run one after another in
    row-major order with a pause between them. A tile without distances
    aborts the computation with MatrixTileError.
    """
    n = len(locations)
    bad = _invalid_locations(locations)
    if bad:
        raise ValueError(f"Locations without valid coordinates at indices: {bad}")

    pacer = pacer or FixedDelay.from_ms(pause_ms)
    matrix: List[List[Optional[float]]] = [[None] * n for _ in range(n)]
    tiles = iter_tiles(n, tile)

    logger.info(f"Computing {n}x{n} distance matrix in {len(tiles)} tile(s) of up to {tile}x{tile}")

    for index, t in enumerate(tiles):
        kwargs = {'profile': profile} if profile else {}
        data = await client.matrix(locations, sources=t.sources, destinations=t.destinations,
                                   metrics=['distance'], **kwargs)

        distances = data.get('distances') if isinstance(data, dict) else None
        if distances is None:
            if isinstance(data, dict) and data.get('error'):
                raise MatrixTileError(t.row_block, t.col_block, f"no distances in response ({data['error']})")
            raise MatrixTileError(t.row_block, t.col_block)
        if len(distances) != len(t.sources) or any(len(row) != len(t.destinations) for row in distances):
            raise MatrixTileError(
                t.row_block, t.col_block,
                f"expected {len(t.sources)}x{len(t.destinations)} distances"
            )

        row_start = t.sources[0]
        col_start = t.destinations[0]
        for i, row in enumerate(distances):
            for j, value in enumerate(row):
                matrix[row_start + i][col_start + j] = value

        logger.debug(f"Tile r={t.row_block}, c={t.col_block} done ({index + 1}/{len(tiles)})")

        if index < len(tiles) - 1:
            await pacer.wait()

    return matrix


def _format_cell(value) -> str:
    if value is None:
        return ''
    return f"{float(value):.2f}"


def save_matrix_csv(ids: Sequence[str], matrix: Sequence[Sequence[Optional[float]]], path: str) -> Path:
    """Write the matrix with place ids as header row and first column"""
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(['place_id', *ids])
    for place_id, row in zip(ids, matrix):
        writer.writerow([place_id, *(_format_cell(v) for v in row)])

    content = buffer.getvalue()
    if content.endswith('\n'):
        content = content[:-1]

    with open(out_path, 'w', newline='', encoding='utf-8') as f:
        f.write(content)

    logger.info(f"Saved {len(ids)}x{len(ids)} matrix to {out_path}")
    return out_path
