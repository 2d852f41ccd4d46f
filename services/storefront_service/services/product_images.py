"""Best-effort resolution of product display images.

Fallback chain, each step tried only when the previous one found nothing:

1. images uploaded for the product (primary first, then by sort order);
2. the explicit name (or id) to filename table;
3. a search of the bundled image files for the sanitized product name,
   exact or with a ``_N`` / ``-N`` suffix;
4. the placeholder.

Landing on the placeholder is a normal outcome, not an error.
"""

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Sequence, Tuple

IMAGE_BASE_PATH = "/images/products"
PLACEHOLDER_IMAGE = "placeholder.svg"
IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "webp", "avif")
MAX_SUFFIX = 10

_DISALLOWED_CHARS = re.compile(r"[^a-z0-9\s\-_.]")
_WHITESPACE = re.compile(r"\s+")
_VARIANT_SUFFIX = re.compile(r"[_-](\d+)$")

# Files shipped under /images/products by the storefront frontend.
BUNDLED_IMAGES: Tuple[str, ...] = (
    "sherwani.JPG",
    "Emerald Green Sherwani.jpg",
    "Peacock Blue Sherwani.JPG",
    "Peacock Blue Sherwani_1.JPG",
    "jodhpuri.jpg",
    "indo-western.JPG",
    "Royal Blue Bandhgala.webp",
    "Royal Blue Bandhgala_1.webp",
    "Royal Blue Bandhgala_2.webp",
    "Royal Blue Bandhgala_3.webp",
    "Classic Bandhgala.webp",
    "Classic Bandhgala-1.webp",
    "Classic Bandhgala-2.webp",
    "Ivory Pearl Sherwani.webp",
    "Ivory Pearl Sherwani_1.webp",
    "Royal Maroon Sherwani.jpg",
    "Royal Maroon Sherwani_1.jpg",
    "leather wedding mojaris.jpg",
    "leather wedding mojaris.webp",
    "Legacy Brand.jpg",
    "rohit-anniversary.jpg",
    "Royal Threads.png",
    "Wine Velvet Indo-Western.webp",
)

PRODUCT_IMAGE_MAP: Dict[str, str] = {
    "Burgundy Wedding Sherwani": "Burgundy Wedding Sherwani.avif",
    "Classic Cream Sherwani": "Classic Cream Sherwani.avif",
    "Royal Maroon Sherwani": "Royal Maroon Sherwani.jpg",
    "Emerald Green Sherwani": "Emerald Green Sherwani.jpg",
    "Peacock Blue Silk Sherwani": "Peacock Blue Sherwani.JPG",
    "Peacock Blue Sherwani": "Peacock Blue Sherwani.JPG",
    "Ivory Pearl Sherwani": "Ivory Pearl Sherwani.webp",
    "Golden Silk Sherwani": "Golden Silk Sherwani.webp",
    "Classic Jodhpuri Suit": "jodhpuri.jpg",
    "Royal Blue Jodhpuri": "jodhpuri.jpg",
    "Cream Jodhpuri": "jodhpuri.jpg",
    "Indo-Western Fusion": "indo-western.JPG",
    "Modern Indo-Western": "indo-western.JPG",
    "Contemporary Fusion": "indo-western.JPG",
    "Royal Blue Bandhgala": "Royal Blue Bandhgala.webp",
    "Classic Bandhgala": "Classic Bandhgala.webp",
    "Leather Wedding Mojaris": "leather wedding mojaris.jpg",
    "Royal Wedding Mojaris": "leather wedding mojaris.webp",
    "Legacy Collection": "Legacy Brand.jpg",
    "Royal Threads": "Royal Threads.png",
}


@dataclass(frozen=True)
class ResolvedImage:
    url: str
    alt_text: str
    is_primary: bool
    source: str  # uploaded | mapped | matched | placeholder


@dataclass
class ImageCatalog:
    """The static inputs to resolution; swap in a custom one for tests."""

    available_files: Sequence[str] = BUNDLED_IMAGES
    name_map: Dict[str, str] = field(default_factory=lambda: dict(PRODUCT_IMAGE_MAP))
    base_path: str = IMAGE_BASE_PATH
    placeholder: str = PLACEHOLDER_IMAGE

    def url_for(self, filename: str) -> str:
        return f"{self.base_path}/{filename}"


DEFAULT_CATALOG = ImageCatalog()


def sanitize_product_name(name: str) -> str:
    """``"Royal Blue Bandhgala!"`` -> ``"royal-blue-bandhgala"``."""
    cleaned = _DISALLOWED_CHARS.sub("", (name or "").lower()).strip()
    return _WHITESPACE.sub("-", cleaned)


def _split_filename(filename: str) -> Tuple[str, str]:
    path = PurePosixPath(filename)
    return sanitize_product_name(path.stem), path.suffix.lstrip(".").lower()


def find_images_with_suffix(
    product_name: str, available_files: Sequence[str] = BUNDLED_IMAGES
) -> List[str]:
    """Known files named after the product, exact match first.

    Candidates are tried as ``name``, ``name_1`` .. ``name_10``, then
    ``name-1`` .. ``name-10``; filenames are compared after the same
    sanitization, so case and spacing differences still match.
    """
    base = sanitize_product_name(product_name)
    if not base:
        return []

    index: Dict[Tuple[str, str], str] = {}
    for filename in available_files:
        key = _split_filename(filename)
        index.setdefault(key, filename)

    candidates = [base]
    candidates += [f"{base}_{n}" for n in range(1, MAX_SUFFIX + 1)]
    candidates += [f"{base}-{n}" for n in range(1, MAX_SUFFIX + 1)]

    found: List[str] = []
    for stem in candidates:
        for ext in IMAGE_EXTENSIONS:
            filename = index.get((stem, ext))
            if filename and filename not in found:
                found.append(filename)
    return found


def _variants_of(filename: str, available_files: Sequence[str]) -> List[str]:
    """``filename`` followed by its numbered siblings, lowest number first."""
    base, _ = _split_filename(filename)
    numbered: List[Tuple[int, str]] = []
    for candidate in available_files:
        stem, _ = _split_filename(candidate)
        if candidate == filename or not stem.startswith(base):
            continue
        match = _VARIANT_SUFFIX.fullmatch(stem[len(base):])
        if match:
            numbered.append((int(match.group(1)), candidate))
    numbered.sort(key=lambda pair: pair[0])
    return [filename] + [name for _, name in numbered]


def _uploaded(product: Any) -> List[Any]:
    images = list(getattr(product, "images", None) or [])
    return sorted(images, key=lambda img: (not img.is_primary, img.sort_order or 0))


def _mapped_filename(product: Any, catalog: ImageCatalog) -> Optional[str]:
    name = getattr(product, "name", None)
    if name and name in catalog.name_map:
        return catalog.name_map[name]
    product_id = getattr(product, "id", None)
    if product_id is not None:
        return catalog.name_map.get(str(product_id))
    return None


def resolve_product_images(
    product: Any, catalog: ImageCatalog = DEFAULT_CATALOG
) -> List[ResolvedImage]:
    """Every image for a product gallery; never empty."""
    name = getattr(product, "name", None) or "Product"

    uploaded = _uploaded(product)
    if uploaded:
        return [
            ResolvedImage(
                url=img.image_url,
                alt_text=img.alt_text or name,
                is_primary=position == 0,
                source="uploaded",
            )
            for position, img in enumerate(uploaded)
        ]

    mapped = _mapped_filename(product, catalog)
    if mapped:
        files = _variants_of(mapped, catalog.available_files)
        return [
            ResolvedImage(
                url=catalog.url_for(filename),
                alt_text=name,
                is_primary=position == 0,
                source="mapped",
            )
            for position, filename in enumerate(files)
        ]

    matched = find_images_with_suffix(name, catalog.available_files)
    if matched:
        return [
            ResolvedImage(
                url=catalog.url_for(filename),
                alt_text=name,
                is_primary=position == 0,
                source="matched",
            )
            for position, filename in enumerate(matched)
        ]

    return [
        ResolvedImage(
            url=catalog.url_for(catalog.placeholder),
            alt_text=name,
            is_primary=True,
            source="placeholder",
        )
    ]


def resolve_product_image(
    product: Any, catalog: ImageCatalog = DEFAULT_CATALOG
) -> ResolvedImage:
    """The single display image for product cards."""
    return resolve_product_images(product, catalog)[0]
