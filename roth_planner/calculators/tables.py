"""Loading and year-indexing of the packaged tax tables.

The tables live in ``data/tax_tables.json`` and cover the federal brackets and
standard deductions (keyed by year), state rules, Medicare IRMAA tiers, Social
Security provisional-income thresholds, NIIT thresholds, federal poverty
levels and ACA applicable percentages.  Every function in the calculators
accepts an optional ``tax_tables`` mapping with the same schema so callers can
substitute their own figures.

Dollar thresholds for years after the newest table in the file are projected
by compounding the ``indexing.inflation_rate`` (2.7 % by default) and rounding
to whole dollars.  A year *before* the oldest table is a table gap: the oldest
table is used and a warning is logged.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ..money import inflation_factor

logger = logging.getLogger(__name__)

_DEFAULT_TAX_TABLE_PATH = Path(__file__).resolve().parent.parent / "data" / "tax_tables.json"

DEFAULT_BASE_YEAR = 2026
DEFAULT_INFLATION_RATE = 2.7


def _load_tax_tables(path: Optional[Path] = None) -> Dict[str, Dict]:
    """Load tax tables from JSON.  If ``path`` is not provided, load the
    default file shipped with the package.

    Parameters
    ----------
    path : Path, optional
        Path to a JSON file containing the tax tables.

    Returns
    -------
    dict
        The parsed tax tables.
    """
    p = path or _DEFAULT_TAX_TABLE_PATH
    with open(p, "r", encoding="utf-8") as f:
        tables = json.load(f)
    return tables


def freeze_tables(value: Any) -> Any:
    """Read-only view of parsed JSON: mappings become ``MappingProxyType``, lists tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze_tables(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze_tables(v) for v in value)
    return value


def thaw_tables(value: Any) -> Any:
    """Editable deep copy of (possibly frozen) tables, for building variants."""
    if isinstance(value, Mapping):
        return {k: thaw_tables(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw_tables(v) for v in value]
    return value


@lru_cache(maxsize=None)
def load_default_tables() -> Mapping[str, Any]:
    """Packaged tables, parsed once per process and returned read-only."""
    logger.debug("Loading tax tables from %s", _DEFAULT_TAX_TABLE_PATH)
    return freeze_tables(_load_tax_tables())


def resolve_tables(tax_tables: Optional[Dict[str, Dict]] = None) -> Dict[str, Dict]:
    return tax_tables if tax_tables is not None else load_default_tables()


def indexing_rate(tables: Dict[str, Dict]) -> float:
    return float(tables.get("indexing", {}).get("inflation_rate", DEFAULT_INFLATION_RATE))


def year_table(tables: Dict[str, Dict], year: int) -> Tuple[Dict, float]:
    """Return ``(table, factor)`` for ``year``.

    ``table`` is the newest year table not after ``year`` and ``factor`` the
    inflation factor that projects its thresholds to ``year``.
    """
    available = sorted(int(k) for k in tables if k.isdigit())
    if not available:
        raise KeyError("tax tables contain no year entries")
    eligible = [y for y in available if y <= year]
    if not eligible:
        logger.warning(
            "No tax table for %s; clamping to the %s table", year, available[0]
        )
        return tables[str(available[0])], 1.0
    source = eligible[-1]
    return tables[str(source)], inflation_factor(year - source, indexing_rate(tables))


def section_factor(tables: Dict[str, Dict], section: str, year: int) -> float:
    """Inflation factor for a section carrying its own ``base_year``."""
    base_year = int(tables[section].get("base_year", DEFAULT_BASE_YEAR))
    return inflation_factor(year - base_year, indexing_rate(tables))


__all__ = [
    "DEFAULT_BASE_YEAR",
    "DEFAULT_INFLATION_RATE",
    "freeze_tables",
    "thaw_tables",
    "load_default_tables",
    "resolve_tables",
    "year_table",
    "section_factor",
    "_load_tax_tables",
]
