"""Range anchors: parsing, resolution to episodes, and composition."""

from .compositor import intersect
from .parser import AnchorSpec, AnchorType, parse_anchor_option, parse_identifier
from .resolver import AnchorResolver, AnchorResult

__all__ = [
    "AnchorResolver",
    "AnchorResult",
    "AnchorSpec",
    "AnchorType",
    "intersect",
    "parse_anchor_option",
    "parse_identifier",
]
