"""Show catalogs partitioned into year and game seasons."""

from .builder import CatalogBuilder, build_catalog
from .lookup import find_episode, find_season
from .models import Catalog, EpisodeReference, PartitionKind, Season, SeasonReference

__all__ = [
    "Catalog",
    "CatalogBuilder",
    "EpisodeReference",
    "PartitionKind",
    "Season",
    "SeasonReference",
    "build_catalog",
    "find_episode",
    "find_season",
]
