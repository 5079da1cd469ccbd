"""
Shop catalog.

Administrators grant users access to these shops. Orders may still carry
shop names outside the catalog.
"""

SHOP_CATEGORIES = [
    "Electronics Store",
    "Home & Kitchen",
    "Fashion & Beauty",
    "Sports & Outdoors",
    "Baby & Kids",
    "Health & Personal Care",
    "Automotive",
    "Books & Media",
    "Pet Supplies",
    "Garden & Tools",
    "Toys & Games",
    "Office Products",
    "Industrial & Scientific",
]

# Marketplace -> store categories operated there
_MARKETPLACES: dict[str, list[str]] = {
    "US": SHOP_CATEGORIES,
    "UK": SHOP_CATEGORIES[:7] + ["Garden & Outdoors"],
    "DE": SHOP_CATEGORIES[:7],
    "JP": SHOP_CATEGORIES[:6],
    "CA": SHOP_CATEGORIES[:5],
    "FR": SHOP_CATEGORIES[:5],
    "IT": SHOP_CATEGORIES[:4],
    "ES": SHOP_CATEGORIES[:4],
    "AU": SHOP_CATEGORIES[:4],
    "NL": SHOP_CATEGORIES[:3],
    "SE": SHOP_CATEGORIES[:3],
    "MX": SHOP_CATEGORIES[:3],
    "BR": SHOP_CATEGORIES[:3],
    "IN": SHOP_CATEGORIES[:3],
    "SG": SHOP_CATEGORIES[:3],
    "AE": SHOP_CATEGORIES[:3],
}

TEST_SHOPS = [
    "Test Shop - Development",
    "Demo Shop - Training",
    "Sample Store - Testing",
]


def _shop(marketplace: str, category: str) -> str:
    return f"Amazon {marketplace} - {category}"


PREDEFINED_SHOPS: list[str] = [
    _shop(marketplace, category)
    for marketplace, categories in _MARKETPLACES.items()
    for category in categories
] + TEST_SHOPS


def _regional(marketplaces: list[str], count: int) -> list[str]:
    return [_shop(m, c) for m in marketplaces for c in SHOP_CATEGORIES[:count]]


SHOPS_BY_REGION: dict[str, list[str]] = {
    "North America": _regional(["US", "CA"], 3) + _regional(["MX"], 2),
    "Europe": _regional(["UK", "DE", "FR", "IT", "ES", "NL", "SE"], 2),
    "Asia Pacific": _regional(["JP", "AU", "IN", "SG"], 2),
    "Middle East & Africa": _regional(["AE"], 2),
    "South America": _regional(["BR"], 2),
    "Testing": list(TEST_SHOPS),
}


def get_all_shops() -> list[str]:
    """All catalog shops, sorted by name."""
    return sorted(PREDEFINED_SHOPS)


def get_shops_by_region(region: str) -> list[str]:
    """Shops of a region; unknown regions have none."""
    return list(SHOPS_BY_REGION.get(region, []))


def get_shops_by_category(category: str) -> list[str]:
    """Catalog shops whose name contains ``category``."""
    return [shop for shop in PREDEFINED_SHOPS if category in shop]
