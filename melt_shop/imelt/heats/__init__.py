"""
Static heat records (identity, grade, crew, chemistry, buckets, stages).
"""

from .catalog import REFERENCE_HEAT_ID, build_catalog, catalog_ids
from .store import HeatStore

__all__ = [
    'REFERENCE_HEAT_ID',
    'build_catalog',
    'catalog_ids',
    'HeatStore',
]
