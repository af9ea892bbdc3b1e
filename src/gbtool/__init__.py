"""gb-tool - Giant Bomb show catalogs, seasons and downloads."""

__version__ = "0.1.0"
