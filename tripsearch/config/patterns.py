"""Known vocabulary for term weighting and semantic component extraction."""

import re

EMAIL_PATTERN = re.compile(r"^[\w.+-]+@[\w-]+(?:\.[\w-]+)+$")
EMAIL_SEARCH_PATTERN = re.compile(r"[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}")
YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")
PROPER_NOUN_PATTERN = re.compile(r"^[A-Z][a-z]+")
CAPITALISED_RUN_PATTERN = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")
PRICE_PATTERN = re.compile(r"\$(\d+)")

# Destinations → weight boost as "location" terms
KNOWN_LOCATIONS: frozenset[str] = frozenset(
    {
        "bristol", "bath", "london", "paris", "hawaii", "york", "rome", "venice",
        "mediterranean", "caribbean", "europe", "asia", "america", "africa",
        "australia", "japan", "italy", "france", "spain", "greece", "turkey",
        "croatia", "iceland", "norway", "sweden", "denmark", "portugal",
        "scotland", "ireland", "wales", "england", "thailand", "vietnam",
        "singapore", "malaysia", "indonesia", "philippines", "china", "korea",
        "dublin", "tokyo", "bangkok", "istanbul", "barcelona", "germany",
    }
)  # fmt: skip

# Occasions that make a trip memorable to the people asking about it
KNOWN_DESCRIPTORS: frozenset[str] = frozenset(
    {
        "anniversary", "birthday", "wedding", "honeymoon", "celebration",
        "reunion", "vacation", "holiday", "getaway", "business", "family",
        "adventure", "relaxation", "cultural", "cruise", "romantic",
        "luxury", "budget", "premium", "deluxe", "group", "solo", "couple",
        "couples", "corporate",
    }
)  # fmt: skip

STATUS_WORDS: frozenset[str] = frozenset(
    {"planning", "confirmed", "completed", "cancelled", "active", "ongoing"}
)

COST_WORDS: frozenset[str] = frozenset(
    {"budget", "cheap", "expensive", "luxury", "premium"}
)

MONTH_NAMES: tuple[str, ...] = (
    "january", "february", "march", "april", "may", "june", "july",
    "august", "september", "october", "november", "december",
)  # fmt: skip

# Extra destination words recognised only by the semantic matcher
DESTINATION_INDICATORS: frozenset[str] = KNOWN_LOCATIONS | frozenset(
    {"island", "beach", "mountain", "city", "country"}
)

DESTINATION_SYNONYMS: dict[str, list[str]] = {
    "hawaii": ["hawaiian islands", "aloha state", "pacific islands"],
    "mediterranean": ["med sea", "mediterranean sea", "med cruise"],
    "caribbean": ["carribean", "west indies", "caribbean islands"],
    "europe": ["european", "old continent"],
    "paris": ["city of light", "france capital"],
    "london": ["uk capital", "england capital", "britain"],
    "rome": ["eternal city", "italy capital", "roman"],
    "greece": ["greek islands", "hellenic", "greek"],
    "italy": ["italian", "italia"],
    "spain": ["spanish", "espana"],
    "iceland": ["icelandic", "reykjavik"],
    "norway": ["norwegian", "norge", "scandinavia"],
    "thailand": ["thai", "siam", "bangkok"],
    "japan": ["japanese", "nippon", "tokyo"],
}

STATUS_SYNONYMS: dict[str, list[str]] = {
    "planning": ["draft", "in planning", "preliminary"],
    "confirmed": ["booked", "secured", "finalized"],
    "in_progress": ["ongoing", "active", "traveling", "current"],
    "completed": ["finished", "done", "past", "concluded"],
    "cancelled": ["canceled", "aborted", "scrapped"],
}

DESCRIPTOR_SYNONYMS: dict[str, list[str]] = {
    "anniversary": ["celebration", "milestone", "special occasion"],
    "honeymoon": ["newlyweds", "romantic", "wedding trip"],
    "vacation": ["holiday", "getaway", "break"],
    "business": ["work", "corporate", "conference"],
    "family": ["relatives", "kids", "children", "parents"],
    "adventure": ["exciting", "thrilling", "active"],
    "relaxation": ["peaceful", "calm", "restful", "spa"],
    "cultural": ["heritage", "historical", "museums"],
    "cruise": ["ship", "sailing", "maritime", "ocean"],
}

# Words that only qualify an identifier ("trip id 482", "client #7")
IDENTIFIER_QUALIFIERS: frozenset[str] = frozenset(
    {"trip", "client", "id", "ids", "number", "no", "num"}
)

# Words skipped when picking the single term of a word scan
WORD_SCAN_SKIP: frozenset[str] = frozenset(
    {"create", "new", "all", "show", "get", "find"}
)
