"""Catalogue of service/item labels offered when classifying a photo."""
from shared.utils import strip_accents

DEFAULT_SERVICE_ITEMS = (
    "17.11 - PINTURA ACRILICA (COLORIDA)",
    "17.8 - PINTURA DE PISO",
    "19.37 - SUBSTITUIÇÃO DE LÂMPADAS",
)

PAINTING_KEYWORD = "pintura"


def search_service_items(query, items=DEFAULT_SERVICE_ITEMS):
    """Filter the catalogue by a case-insensitive substring.

    An empty or blank query returns every item.
    """
    query = (query or "").strip().lower()
    if not query:
        return list(items)
    return [item for item in items if query in item.lower()]


def is_painting_item(label):
    """Whether a service/item label denotes painting work."""
    if not label:
        return False
    return PAINTING_KEYWORD in strip_accents(label).lower()
