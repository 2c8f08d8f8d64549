# src/drillboard/tasks/categories.py

"""
Activity category registry.

Each category is bound to exactly one measurement unit. The registry is only
consulted when a task is created or its category is edited; stored tasks keep
the unit they were given at that time.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidCategoryError
from .task_models import MeasureUnit


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str
    unit: MeasureUnit


DRILL_CATEGORIES: tuple[Category, ...] = (
    Category("perf_pq", "Perforación PQ", MeasureUnit.METERS),
    Category("perf_hq", "Perforación HQ", MeasureUnit.METERS),
    Category("perf_nq", "Perforación NQ", MeasureUnit.METERS),
    Category("rec_core", "Recuperación de Testigos", MeasureUnit.PERCENTAGE),
    Category("mapeo_geo", "Mapeo Geológico", MeasureUnit.METERS),
    Category("log_geotech", "Logueo Geotécnico", MeasureUnit.METERS),
    Category("sampling", "Muestreo", MeasureUnit.UNITS),
    Category("install_piezo", "Instalación Piezómetro", MeasureUnit.UNITS),
    Category("rig_move", "Movilización de Equipo", MeasureUnit.HOURS),
    Category("maintenance", "Mantenimiento Mecánico", MeasureUnit.HOURS),
    Category("safety_mtg", "Charla de Seguridad", MeasureUnit.HOURS),
)


def find_category(key: str, registry: tuple[Category, ...] = DRILL_CATEGORIES) -> Category:
    """
    Resolve a category by display name (case-insensitive) or by id.

    Raises InvalidCategoryError for anything outside the registry.
    """
    needle = (key or "").strip()
    if not needle:
        raise InvalidCategoryError(key)
    folded = needle.casefold()
    for cat in registry:
        if cat.id == needle or cat.name.casefold() == folded:
            return cat
    raise InvalidCategoryError(key)
