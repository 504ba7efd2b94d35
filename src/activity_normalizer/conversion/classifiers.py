"""Keyword classifiers and parsers for derived Activity fields.

Type and category are inferred from the title/description text; age
groups, pricing, city/neighborhood and recurrence are parsed from the
values the field mapper selected. Everything here is a pure function.
"""

import logging
import re
from typing import Dict, Iterable, List, Tuple
from urllib.parse import urlparse

from activity_normalizer.conversion.normalizers import is_free_price, price_amounts, safe_float
from activity_normalizer.schemas.activity import (
    ActivityCategory,
    ActivityType,
    AgeGroup,
    AgeGroupCategory,
    Pricing,
    PricingType,
    ScheduleType,
)

logger = logging.getLogger(__name__)

# ── Keyword tables ───────────────────────────────────────────────────

# Checked in order; first table with a hit wins.
TYPE_KEYWORDS: List[Tuple[ActivityType, List[str]]] = [
    (ActivityType.PERFORMANCE, ["performance", "show", "concert", "play", "theater", "theatre"]),
    (ActivityType.CLASS, ["class", "lesson", "course", "workshop"]),
    (ActivityType.CAMP, ["camp", "summer camp", "day camp"]),
]

ACTIVITIES_CLASS_KEYWORDS = ["class", "classes", "lesson", "course", "weekly", "monthly"]
ACTIVITIES_CAMP_KEYWORDS = ["camp", "summer", "day camp", "week"]

CATEGORY_KEYWORDS: List[Tuple[ActivityCategory, List[str]]] = [
    (ActivityCategory.ARTS_CREATIVITY,
     ["art", "paint", "craft", "music", "dance", "theater", "creative", "drawing"]),
    (ActivityCategory.ACTIVE_SPORTS,
     ["sport", "soccer", "basketball", "swim", "run", "bike", "active", "fitness", "martial arts"]),
    (ActivityCategory.EDUCATIONAL_STEM,
     ["science", "stem", "math", "engineering", "coding", "robot", "experiment", "tech"]),
    (ActivityCategory.ENTERTAINMENT_EVENTS,
     ["performance", "show", "concert", "festival", "movie", "entertainment"]),
    (ActivityCategory.CAMPS_PROGRAMS,
     ["camp", "program", "course", "academy", "school"]),
]

# Age-group keyword -> canonical group. Order matters ("preschool" before "school").
AGE_GROUP_RULES: List[Tuple[List[str], AgeGroup]] = [
    (["infant", "baby", "babies"],
     AgeGroup(category=AgeGroupCategory.INFANT, min_age=0, max_age=12, unit="months",
              description="Infants (0-12 months)")),
    (["toddler"],
     AgeGroup(category=AgeGroupCategory.TODDLER, min_age=1, max_age=2,
              description="Toddlers (1-2 years)")),
    (["preschool", "pre-k"],
     AgeGroup(category=AgeGroupCategory.PRESCHOOL, min_age=3, max_age=5,
              description="Preschoolers (3-5 years)")),
    (["elementary", "school-age", "kids"],
     AgeGroup(category=AgeGroupCategory.ELEMENTARY, min_age=6, max_age=10,
              description="Elementary (6-10 years)")),
    (["tween"],
     AgeGroup(category=AgeGroupCategory.TWEEN, min_age=11, max_age=12,
              description="Tweens (11-12 years)")),
    (["teen", "teenager"],
     AgeGroup(category=AgeGroupCategory.TEEN, min_age=13, max_age=17,
              description="Teens (13-17 years)")),
    (["adult"],
     AgeGroup(category=AgeGroupCategory.ADULT, min_age=18, max_age=99,
              description="Adults (18+ years)")),
]

ALL_AGES = AgeGroup(category=AgeGroupCategory.ALL_AGES, min_age=0, max_age=99, description="All Ages")

NEIGHBORHOODS: Dict[str, str] = {
    "ballard": "Ballard",
    "capitol hill": "Capitol Hill",
    "fremont": "Fremont",
    "wallingford": "Wallingford",
    "green lake": "Green Lake",
    "queen anne": "Queen Anne",
    "belltown": "Belltown",
    "university": "University District",
    "georgetown": "Georgetown",
    "beacon hill": "Beacon Hill",
}

NEARBY_CITIES = ["Bellevue", "Redmond", "Kirkland"]

DONATION_TERMS = ["donation", "suggested", "pay what you can"]

FREQUENCY_TERMS: List[Tuple[str, List[str]]] = [
    ("daily", ["daily", "every day"]),
    ("weekly", ["weekly", "every week", "each week"]),
    ("monthly", ["monthly", "every month"]),
    ("seasonal", ["seasonal", "season"]),
]

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_RE_AGE_RANGE = re.compile(r"(\d{1,2})\s*(?:-|to)\s*(\d{1,2})\s*(months?|mos?|years?|yrs?)?", re.IGNORECASE)
_RE_AGE_PLUS = re.compile(r"(\d{1,2})\s*\+", re.IGNORECASE)


def contains_keywords(content: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring check against any keyword."""
    lowered = content.lower()
    return any(k in lowered for k in keywords)


# ── Type / category ──────────────────────────────────────────────────


def determine_activity_type(schema_type: str, title: str, description: str) -> ActivityType:
    """Infer the activity type, using the schema type as the first hint."""
    content = f"{title} {description}".lower()

    if schema_type == "events":
        return ActivityType.EVENT
    if schema_type == "activities":
        if contains_keywords(content, ACTIVITIES_CLASS_KEYWORDS):
            return ActivityType.CLASS
        if contains_keywords(content, ACTIVITIES_CAMP_KEYWORDS):
            return ActivityType.CAMP
        return ActivityType.FREE_ACTIVITY
    if schema_type == "venues":
        return ActivityType.FREE_ACTIVITY

    for activity_type, keywords in TYPE_KEYWORDS:
        if contains_keywords(content, keywords):
            return activity_type
    return ActivityType.EVENT


def determine_category(title: str, description: str) -> ActivityCategory:
    content = f"{title} {description}".lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if contains_keywords(content, keywords):
            return category
    return ActivityCategory.FREE_COMMUNITY


def category_matched_keyword(title: str, description: str) -> bool:
    """True when category came from a keyword hit rather than the default."""
    content = f"{title} {description}".lower()
    return any(contains_keywords(content, kws) for _, kws in CATEGORY_KEYWORDS)


# ── Age groups ───────────────────────────────────────────────────────


def parse_age_group(text: str) -> AgeGroup:
    """Map free text such as 'Preschool', 'ages 3-5' or '13+' to an AgeGroup."""
    lowered = text.strip().lower()
    for keywords, group in AGE_GROUP_RULES:
        if contains_keywords(lowered, keywords):
            return group.model_copy()

    m = _RE_AGE_RANGE.search(lowered)
    if m:
        low, high = int(m.group(1)), int(m.group(2))
        unit = "months" if (m.group(3) or "").startswith("mo") else "years"
        return AgeGroup(
            category=_category_for_ages(low, high, unit),
            min_age=min(low, high),
            max_age=max(low, high),
            unit=unit,
            description=text.strip(),
        )

    m = _RE_AGE_PLUS.search(lowered)
    if m:
        low = int(m.group(1))
        return AgeGroup(
            category=AgeGroupCategory.ADULT if low >= 18 else AgeGroupCategory.ALL_AGES,
            min_age=low,
            max_age=99,
            description=text.strip(),
        )
    return ALL_AGES.model_copy()


def _category_for_ages(low: int, high: int, unit: str) -> AgeGroupCategory:
    if unit == "months":
        return AgeGroupCategory.INFANT if high <= 12 else AgeGroupCategory.TODDLER
    bands = [
        (2, AgeGroupCategory.TODDLER),
        (5, AgeGroupCategory.PRESCHOOL),
        (10, AgeGroupCategory.ELEMENTARY),
        (12, AgeGroupCategory.TWEEN),
        (17, AgeGroupCategory.TEEN),
    ]
    for upper, category in bands:
        if high <= upper:
            return category
    return AgeGroupCategory.ALL_AGES if low < 18 else AgeGroupCategory.ADULT


def parse_age_groups(values: Iterable[str]) -> List[AgeGroup]:
    """Parse each age description, dropping duplicates by category."""
    groups: List[AgeGroup] = []
    seen = set()
    for value in values:
        group = parse_age_group(value)
        if group.category not in seen:
            seen.add(group.category)
            groups.append(group)
    return groups


# ── Pricing ──────────────────────────────────────────────────────────


def parse_pricing(text: str) -> Pricing:
    """Turn a price string into structured Pricing."""
    lowered = text.strip().lower()
    if is_free_price(lowered):
        return Pricing(type=PricingType.FREE, cost=0.0, description="Free")
    if contains_keywords(lowered, DONATION_TERMS):
        return Pricing(type=PricingType.DONATION, cost=safe_float(text, default=0.0), description=text.strip())

    cost = safe_float(text, default=None)
    if cost is not None and cost > 0:
        unit = "per-family" if "family" in lowered else "per-person"
        if "session" in lowered or "class" in lowered:
            unit = "per-session"
        return Pricing(type=PricingType.PAID, cost=cost, unit=unit, description=text.strip())
    if cost == 0 and max(price_amounts(text), default=0.0) == 0:
        return Pricing(type=PricingType.FREE, cost=0.0, description="Free")
    # "$0-$20" and other ranges starting at zero
    return Pricing(type=PricingType.VARIABLE, description=text.strip())


# ── Location ─────────────────────────────────────────────────────────


def parse_location_from_address(address: str, default_city: str = "Seattle") -> Tuple[str, str]:
    """Return (city, neighborhood) recognized in an address or venue string."""
    lowered = address.lower()
    for key, formal in NEIGHBORHOODS.items():
        if key in lowered:
            return "Seattle", formal
    for city in NEARBY_CITIES:
        if city.lower() in lowered:
            return city, ""
    return default_city, ""


_RE_ZIP = re.compile(r"\b(\d{5})(?:-\d{4})?\b")


def extract_zip_code(address: str) -> str:
    m = _RE_ZIP.search(address)
    return m.group(1) if m else ""


def extract_domain(url: str) -> str:
    """Host part of a URL without a leading 'www.'; empty string if none."""
    if not url:
        return ""
    try:
        host = urlparse(url if "://" in url else f"https://{url}").netloc.lower()
    except ValueError as e:
        logger.debug(f"Unparseable source URL '{url}': {e}")
        return ""
    return host[4:] if host.startswith("www.") else host


# ── Recurrence ───────────────────────────────────────────────────────


def parse_recurrence(text: str) -> Tuple[ScheduleType, str, List[str]]:
    """Read a schedule/frequency string.

    Returns (schedule type, frequency, days of week). A value that names no
    frequency and no weekday leaves the schedule one-time.
    """
    lowered = text.lower()
    frequency = ""
    for name, terms in FREQUENCY_TERMS:
        if contains_keywords(lowered, terms):
            frequency = name
            break

    days = [d.capitalize() for d in WEEKDAYS if d in lowered or f"{d}s" in lowered]
    if not days:
        days = [d.capitalize() for d in WEEKDAYS if re.search(rf"\b{d[:3]}s?\b", lowered)]

    if lowered.strip() in ("ongoing", "year-round", "year round", "always open"):
        return ScheduleType.ONGOING, frequency, days
    if frequency or days:
        return ScheduleType.RECURRING, frequency or "weekly", days
    return ScheduleType.ONE_TIME, "", []


def describe_source_reliability(domain: str) -> str:
    """Government, library and school domains are treated as high reliability."""
    if domain.endswith((".gov", ".edu")) or "library" in domain or "parks" in domain:
        return "high"
    return "medium"
