"""Unit tests for the product image fallback chain."""

import uuid
from types import SimpleNamespace

import pytest
from services.storefront_service.services.product_images import (
    ImageCatalog,
    find_images_with_suffix,
    resolve_product_image,
    resolve_product_images,
    sanitize_product_name,
)


def _product(name, images=()):
    return SimpleNamespace(id=uuid.uuid4(), name=name, images=list(images))


def _image(url, is_primary=False, sort_order=0, alt_text=None):
    return SimpleNamespace(
        image_url=url, is_primary=is_primary, sort_order=sort_order, alt_text=alt_text
    )


@pytest.mark.unit
def test_sanitize_product_name():
    assert sanitize_product_name("Royal Blue Bandhgala!") == "royal-blue-bandhgala"
    assert sanitize_product_name("  Indo-Western  Fusion ") == "indo-western-fusion"
    assert sanitize_product_name("Mojaris_2") == "mojaris_2"


@pytest.mark.unit
def test_uploaded_images_win_and_primary_comes_first():
    product = _product(
        "Royal Blue Bandhgala",
        images=[
            _image("https://cdn.example.com/b.jpg", sort_order=0),
            _image("https://cdn.example.com/a.jpg", is_primary=True, sort_order=1),
        ],
    )

    gallery = resolve_product_images(product)

    assert [img.url for img in gallery] == [
        "https://cdn.example.com/a.jpg",
        "https://cdn.example.com/b.jpg",
    ]
    assert gallery[0].is_primary and not gallery[1].is_primary
    assert {img.source for img in gallery} == {"uploaded"}
    assert gallery[0].alt_text == "Royal Blue Bandhgala"


@pytest.mark.unit
def test_mapped_name_includes_numbered_variants():
    gallery = resolve_product_images(_product("Royal Blue Bandhgala"))

    assert [img.url for img in gallery] == [
        "/images/products/Royal Blue Bandhgala.webp",
        "/images/products/Royal Blue Bandhgala_1.webp",
        "/images/products/Royal Blue Bandhgala_2.webp",
        "/images/products/Royal Blue Bandhgala_3.webp",
    ]
    assert gallery[0].source == "mapped"


@pytest.mark.unit
def test_suffix_search_when_name_is_not_mapped():
    catalog = ImageCatalog(name_map={})

    gallery = resolve_product_images(_product("Classic Bandhgala"), catalog)

    assert [img.url for img in gallery] == [
        "/images/products/Classic Bandhgala.webp",
        "/images/products/Classic Bandhgala-1.webp",
        "/images/products/Classic Bandhgala-2.webp",
    ]
    assert gallery[0].source == "matched"


@pytest.mark.unit
def test_suffix_search_ignores_case_and_extension_case():
    files = ["WINE velvet.JPG", "wine velvet_2.png", "other.jpg"]
    assert find_images_with_suffix("Wine Velvet", files) == [
        "WINE velvet.JPG",
        "wine velvet_2.png",
    ]


@pytest.mark.unit
def test_unknown_product_falls_back_to_placeholder():
    image = resolve_product_image(_product("Completely Unknown Kurta"))

    assert image.url == "/images/products/placeholder.svg"
    assert image.source == "placeholder"
    assert image.is_primary


@pytest.mark.unit
def test_product_without_name_still_resolves():
    image = resolve_product_image(SimpleNamespace(id=None, name=None, images=[]))
    assert image.url.endswith("placeholder.svg")
    assert image.alt_text == "Product"
