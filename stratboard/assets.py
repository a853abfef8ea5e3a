"""
Imagery and font providers consumed by the renderer.

An asset source (directory or zip archive) is laid out as:

    assets.json           [{"id": 1, "name": "...", "scale": 0.005, "image": "..."}, ...]
    <id>.png              sprite for object type <id>
    x<n>.png              background <n - 1>
    x<image>.png          arc mask named by a manifest entry's "image"
    Roboto-Medium.ttf     label font (Pillow's bundled font when absent)
"""

from __future__ import annotations

import io
import json
import threading
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Set

from PIL import Image, ImageFont

from .errors import AssetError
from .geometry import ARC_TYPE_ID

MANIFEST_NAME = "assets.json"
FONT_NAME = "Roboto-Medium.ttf"
LABEL_FONT_SIZE = 30
DEFAULT_OBJECT_SCALE = 1.0 / 200.0
DEFAULT_ARC_MASKS = {ARC_TYPE_ID: "circle_aoe"}


@dataclass(frozen=True)
class Sprite:
    image: Image.Image
    scale: float


@dataclass(frozen=True)
class AssetEntry:
    id: int
    name: str
    scale: float = DEFAULT_OBJECT_SCALE
    image: str | None = None


class FontProvider(ABC):
    @abstractmethod
    def font_face(self) -> ImageFont.FreeTypeFont:
        raise NotImplementedError


class ImageryProvider(FontProvider):
    @abstractmethod
    def sprite_for(self, type_id: int) -> Sprite:
        raise NotImplementedError

    @abstractmethod
    def background_for(self, background_id: int) -> Image.Image:
        raise NotImplementedError

    def arc_mask_for(self, type_id: int) -> Image.Image | None:
        return None


def parse_manifest(text: str) -> Dict[int, AssetEntry]:
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AssetError(f"{MANIFEST_NAME} is not valid JSON: {exc}") from exc
    if not isinstance(raw, list):
        raise AssetError(f"{MANIFEST_NAME} must contain a list of assets")
    entries: Dict[int, AssetEntry] = {}
    for item in raw:
        try:
            asset_id = int(item["id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise AssetError(f"manifest entry without a usable id: {item!r}") from exc
        try:
            scale = float(item.get("scale") or 0.0) or DEFAULT_OBJECT_SCALE
        except (TypeError, ValueError) as exc:
            raise AssetError(f"manifest entry {asset_id} has an unusable scale: {item['scale']!r}") from exc
        entries[asset_id] = AssetEntry(
            id=asset_id,
            name=str(item.get("name", "")),
            scale=scale,
            image=item.get("image") or None,
        )
    return entries


class ManifestAssetProvider(ImageryProvider):
    """
    Resolves assets through ``assets.json``. Decoded images are cached on
    first use; the cache is guarded so one provider can serve several renders
    at once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._images: Dict[str, Image.Image] = {}
        self._font: ImageFont.FreeTypeFont | None = None
        self._manifest: Dict[int, AssetEntry] | None = None

    @abstractmethod
    def _read_member(self, name: str) -> bytes:
        """Return the raw bytes of ``name`` or raise ``AssetError``."""

    @abstractmethod
    def _has_member(self, name: str) -> bool:
        raise NotImplementedError

    @property
    def manifest(self) -> Dict[int, AssetEntry]:
        if self._manifest is None:
            entries: Dict[int, AssetEntry] = {}
            if self._has_member(MANIFEST_NAME):
                entries = parse_manifest(self._read_member(MANIFEST_NAME).decode("utf-8"))
            with self._lock:
                if self._manifest is None:
                    self._manifest = entries
        return self._manifest

    def _load_image(self, name: str) -> Image.Image:
        with self._lock:
            cached = self._images.get(name)
        if cached is not None:
            return cached
        blob = self._read_member(name)
        try:
            with Image.open(io.BytesIO(blob)) as img:
                image = img.convert("RGBA")
        except OSError as exc:
            raise AssetError(f"unable to decode {name}: {exc}") from exc
        with self._lock:
            return self._images.setdefault(name, image)

    def sprite_for(self, type_id: int) -> Sprite:
        entry = self.manifest.get(type_id)
        if entry is None:
            raise AssetError(f"no asset registered for object type {type_id}")
        return Sprite(image=self._load_image(f"{type_id}.png"), scale=entry.scale)

    def background_for(self, background_id: int) -> Image.Image:
        return self._load_image(f"x{background_id + 1}.png")

    def arc_mask_for(self, type_id: int) -> Image.Image | None:
        entry = self.manifest.get(type_id)
        name = entry.image if entry and entry.image else DEFAULT_ARC_MASKS.get(type_id)
        if not name:
            return None
        return self._load_image(f"x{name}.png")

    def font_face(self) -> ImageFont.FreeTypeFont:
        if self._font is not None:
            return self._font
        if self._has_member(FONT_NAME):
            try:
                font = ImageFont.truetype(io.BytesIO(self._read_member(FONT_NAME)), LABEL_FONT_SIZE)
            except OSError as exc:
                raise AssetError(f"unable to load {FONT_NAME}: {exc}") from exc
        else:
            font = ImageFont.load_default(size=LABEL_FONT_SIZE)
        with self._lock:
            if self._font is None:
                self._font = font
        return self._font


class DirectoryAssetProvider(ManifestAssetProvider):
    def __init__(self, root: Path) -> None:
        super().__init__()
        self.root = root

    def _has_member(self, name: str) -> bool:
        return (self.root / name).is_file()

    def _read_member(self, name: str) -> bytes:
        try:
            return (self.root / name).read_bytes()
        except OSError as exc:
            raise AssetError(f"asset {name} not found in {self.root}") from exc


class ZipAssetProvider(ManifestAssetProvider):
    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path
        try:
            self._archive = zipfile.ZipFile(path)
        except (OSError, zipfile.BadZipFile) as exc:
            raise AssetError(f"unable to open asset archive {path}: {exc}") from exc
        self._names: Set[str] = set(self._archive.namelist())

    def close(self) -> None:
        with self._lock:
            self._archive.close()

    def __enter__(self) -> "ZipAssetProvider":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _has_member(self, name: str) -> bool:
        return name in self._names

    def _read_member(self, name: str) -> bytes:
        if name not in self._names:
            raise AssetError(f"asset {name} not found in {self.path}")
        # Every read goes through the one archive handle.
        with self._lock:
            try:
                return self._archive.read(name)
            except (OSError, ValueError, zipfile.BadZipFile) as exc:
                raise AssetError(f"unable to read {name} from {self.path}: {exc}") from exc


def open_asset_provider(path: Path) -> ManifestAssetProvider:
    if path.is_dir():
        return DirectoryAssetProvider(path)
    if not path.exists():
        raise AssetError(f"asset source {path} does not exist")
    return ZipAssetProvider(path)
