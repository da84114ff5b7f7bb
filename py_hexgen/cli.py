"""Command line entry point: generate one map and print its log."""

import argparse
import logging
import sys
from typing import List, Optional

import structlog
from pydantic import ValidationError

from .config import settings
from .config.generator_settings import GenerationOptions, TemperatureLevel
from .core.grid import HexGrid
from .core.map_generator import MapGenerator


def configure_logging(level: str, log_format: str) -> None:
    """Configure stdlib logging and structlog."""
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level.upper())

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hexgen", description="Generate a procedural hex world map."
    )
    parser.add_argument("--seed", help="Seed string (random if omitted)")
    parser.add_argument("--water-level", type=int, default=40, help="Ocean percentage, 0-100")
    parser.add_argument(
        "--temperature",
        choices=[t.value for t in TemperatureLevel],
        default=TemperatureLevel.TEMPERATE.value,
    )
    parser.add_argument("--map-size", type=int, help="Square map size in tiles")
    parser.add_argument("--width", type=int, help="Map width (overrides --map-size)")
    parser.add_argument("--height", type=int, help="Map height (overrides --map-size)")
    parser.add_argument("--log-level", default=settings.log_level)
    parser.add_argument(
        "--log-format", choices=["console", "json"], default=settings.log_format
    )
    return parser


def format_summary(grid: HexGrid) -> List[str]:
    def line(label, counts):
        body = ", ".join(f"{k}={v}" for k, v in sorted(counts.items())) or "none"
        return f"{label}: {body}"

    return [
        line("Biomes", grid.biome_counts()),
        line("Features", grid.feature_counts()),
        line("Resources", grid.resource_counts()),
        f"River segments: {len(grid.rivers)}",
    ]


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_format)

    try:
        options = GenerationOptions(
            water_level=args.water_level,
            temperature=args.temperature,
            map_size=args.map_size,
            width=args.width,
            height=args.height,
            seed=args.seed,
        )
    except ValidationError as e:
        print(f"Invalid options: {e}", file=sys.stderr)
        return 2

    grid = HexGrid(settings.default_map_width, settings.default_map_height)
    log = MapGenerator(settings.generator).generate(grid, options)
    for entry in log:
        print(entry)
    if log and log[0].startswith("Error:"):
        return 1

    print()
    for entry in format_summary(grid):
        print(entry)
    return 0


if __name__ == "__main__":
    sys.exit(main())
