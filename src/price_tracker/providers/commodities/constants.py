"""Precious metals priced by the commodity providers, per troy ounce in USD."""

METAL_NAMES = {
    "XAU": "Gold",
    "XAG": "Silver",
    "XPT": "Platinum",
    "XPD": "Palladium",
}

SUPPORTED_METALS = frozenset(METAL_NAMES)
UNIT = "troy ounce"
