"""Main entry point for the application."""

import argparse
import asyncio
import sys
from typing import List, Optional

from locality_weather.api.directory import PlaceDirectoryClient
from locality_weather.api.weatherapi import WeatherApiClient
from locality_weather.cache.blob_store import FileBlobStore
from locality_weather.cache.directory import DirectoryCache
from locality_weather.cache.observation import ObservationCache
from locality_weather.data.models import GeoPoint, PlaceRecord, ResolvedWeather
from locality_weather.data.transform import observation_location_point
from locality_weather.errors import DirectoryFetchError
from locality_weather.geo.projection import CoordinateTransformer, distance_km
from locality_weather.resolver.places import PlaceDirectory, find_by_symbol, search_places
from locality_weather.resolver.resolver import WeatherResolver
from locality_weather.utils.logger import setup_logger

logger = setup_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Current weather for Israeli localities")
    subparsers = parser.add_subparsers(dest="command", required=True)

    weather = subparsers.add_parser("weather", help="Resolve current weather for a place")
    weather.add_argument("place", help="Symbol number or (part of) a place name")
    weather.add_argument(
        "--refresh", action="store_true", help="Refetch the directory before resolving"
    )

    search = subparsers.add_parser("search", help="Search the locality directory")
    search.add_argument("term", help="Text to match in Hebrew or English names")
    search.add_argument("--limit", type=int, default=None, help="Maximum results")

    subparsers.add_parser("cache-info", help="Show directory cache status")
    subparsers.add_parser("clear-cache", help="Remove the cached directory")

    return parser


def pick_place(places: List[PlaceRecord], query: str) -> Optional[PlaceRecord]:
    """Match a symbol number exactly, else take the first name match."""
    if query.strip().isdigit():
        place = find_by_symbol(places, int(query.strip()))
        if place is not None:
            return place

    matches = search_places(places, query, limit=1)
    return matches[0] if matches else None


def format_weather(place: PlaceRecord, resolved: ResolvedWeather, transformer: CoordinateTransformer) -> str:
    observation = resolved.observation
    location = observation.location
    lines = [
        f"{place.name_english} / {place.name_hebrew}",
        f"  Provider location: {location.name}, {location.region}, {location.country}",
        f"  Updated: {observation.last_updated}",
        f"  {observation.condition.text}",
        f"  Temperature: {observation.temp_c} C / {observation.temp_f} F",
        f"  Wind: {observation.wind_kph} kph / {observation.wind_mph} mph {observation.wind_dir}",
        f"  Pressure: {observation.pressure_mb} mb / {observation.pressure_in} in",
        f"  Humidity: {observation.humidity}%",
        f"  Visibility: {observation.vis_km} km / {observation.vis_miles} miles",
        f"  Source: {'coordinates' if resolved.used_coordinates else 'name'}"
        f"{' (cached)' if resolved.from_cache else ''}",
    ]

    if place.has_coordinates:
        point: GeoPoint = transformer.project(place.x, place.y)
        offset = distance_km(point, observation_location_point(observation))
        lines.append(f"  Distance from place: {offset:.1f} km")

    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    directory_cache = DirectoryCache(FileBlobStore())

    if args.command == "cache-info":
        stats = directory_cache.stats()
        if not stats.present:
            print("No cached directory")
        else:
            print(
                f"{stats.count} places, {stats.age / 3600:.1f} hours old"
                f"{' (expired)' if stats.expired else ''}"
            )
        return 0

    if args.command == "clear-cache":
        directory_cache.clear()
        return 0

    async with PlaceDirectoryClient() as directory_client:
        directory = PlaceDirectory(directory_client, directory_cache)
        try:
            loaded = await directory.load(force_refresh=getattr(args, "refresh", False))
        except DirectoryFetchError as e:
            logger.error(f"Could not load locality directory: {e}")
            return 1

    logger.info(f"Loaded {len(loaded.places)} places from {loaded.source}")

    if args.command == "search":
        for place in search_places(loaded.places, args.term, limit=args.limit):
            print(f"{place.symbol_number}\t{place.name_english}\t{place.name_hebrew}")
        return 0

    place = pick_place(loaded.places, args.place)
    if place is None:
        logger.error(f"No place matches {args.place!r}")
        return 1

    transformer = CoordinateTransformer()
    async with WeatherApiClient() as provider:
        resolver = WeatherResolver(provider, ObservationCache(), transformer=transformer)
        result = await resolver.resolve(place)

    if not isinstance(result, ResolvedWeather):
        logger.error(f"Weather resolution failed ({result.reason.value}): {result.describe()}")
        return 1

    print(format_weather(place, result, transformer))
    return 0


def main():
    """Main function."""
    args = build_parser().parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
