"""Plant-scoped collection naming.

The default plant owns the base collection (``trouble_record``); every other
plant gets a suffixed copy (``trouble_record_NPK1``). Because the suffixed
name contains the base name, invalidating the base name reaches both.
"""

from typing import Iterable


def collection_for_plant(base: str, plant: str | None, default_plant: str) -> str:
    if not plant or plant == default_plant:
        return base
    return f"{base}_{plant}"


def plant_collections(
    base: str,
    plants: Iterable[str],
    default_plant: str,
) -> list[tuple[str, str]]:
    """Return ``(plant, collection)`` pairs for every plant."""
    return [(p, collection_for_plant(base, p, default_plant)) for p in plants]
