"""
Decode in-game strategy board share codes and render them with Pillow.
"""

from .assets import (
    AssetEntry,
    DirectoryAssetProvider,
    FontProvider,
    ImageryProvider,
    ManifestAssetProvider,
    Sprite,
    ZipAssetProvider,
    open_asset_provider,
)
from .cipher import BOARD_PREFIX, BOARD_SUFFIX, SUBSTITUTION_TABLE, map_in, map_out, reverse_cipher
from .deflate_io import unpack_board, unwrap
from .entities import Board, BoardObject, Color
from .errors import (
    AssetError,
    BoardError,
    FormatError,
    ObjectCountError,
    SectionError,
    UnsupportedObjectError,
)
from .geometry import (
    ARC_TYPE_ID,
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    DONUT_TYPE_ID,
    LABEL_TYPE_ID,
    LINE_AOE_TYPE_ID,
    LINE_TYPE_ID,
    Affine,
    classify,
)
from .logging import SectionTraceLogger, describe_board
from .parser import BoardReader, load_board, parse_board
from .render import encode_image, render_board

__all__ = [
    "AssetEntry",
    "DirectoryAssetProvider",
    "FontProvider",
    "ImageryProvider",
    "ManifestAssetProvider",
    "Sprite",
    "ZipAssetProvider",
    "open_asset_provider",
    "BOARD_PREFIX",
    "BOARD_SUFFIX",
    "SUBSTITUTION_TABLE",
    "map_in",
    "map_out",
    "reverse_cipher",
    "unpack_board",
    "unwrap",
    "Board",
    "BoardObject",
    "Color",
    "AssetError",
    "BoardError",
    "FormatError",
    "ObjectCountError",
    "SectionError",
    "UnsupportedObjectError",
    "ARC_TYPE_ID",
    "CANVAS_HEIGHT",
    "CANVAS_WIDTH",
    "DONUT_TYPE_ID",
    "LABEL_TYPE_ID",
    "LINE_AOE_TYPE_ID",
    "LINE_TYPE_ID",
    "Affine",
    "classify",
    "SectionTraceLogger",
    "describe_board",
    "BoardReader",
    "load_board",
    "parse_board",
    "encode_image",
    "render_board",
]
