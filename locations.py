"""Location filter normalization.

Translates the free-text, comma-separated location filter a user types into
the query vocabulary each platform understands, and parses the location
strings platforms return into a canonical display form.

Every projection fails open: when nothing in the filter maps to a platform
value the result is an empty list, and the adapter decides whether that means
"no constraint" or "nothing to fetch".
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Set

DEFAULT_COUNTRIES = frozenset({"United States", "Canada"})

# Substring keyword -> country. Matching is deliberately loose ("us" also hits
# "austin"), which keeps the country projection permissive.
COUNTRY_KEYWORDS: Dict[str, str] = {
    # United States
    "usa": "United States",
    "us": "United States",
    "united states": "United States",
    "washington": "United States",
    "wa": "United States",
    "california": "United States",
    "ca": "United States",
    "new york": "United States",
    "ny": "United States",
    "massachusetts": "United States",
    "ma": "United States",
    "texas": "United States",
    "tx": "United States",
    "illinois": "United States",
    "il": "United States",
    "georgia": "United States",
    "ga": "United States",
    "colorado": "United States",
    "co": "United States",
    "oregon": "United States",
    "or": "United States",
    "florida": "United States",
    "fl": "United States",
    "virginia": "United States",
    "va": "United States",
    "north carolina": "United States",
    "nc": "United States",
    "new jersey": "United States",
    "nj": "United States",
    "pennsylvania": "United States",
    "pa": "United States",
    "michigan": "United States",
    "mi": "United States",
    "minnesota": "United States",
    "mn": "United States",
    "ohio": "United States",
    "oh": "United States",
    "arizona": "United States",
    "az": "United States",
    "utah": "United States",
    "ut": "United States",
    "nevada": "United States",
    "nv": "United States",
    "seattle": "United States",
    "redmond": "United States",
    "bellevue": "United States",
    "san francisco": "United States",
    "sf": "United States",
    "bay area": "United States",
    "mountain view": "United States",
    "sunnyvale": "United States",
    "san jose": "United States",
    "los angeles": "United States",
    "la": "United States",
    "boston": "United States",
    "austin": "United States",
    "chicago": "United States",
    "atlanta": "United States",
    "denver": "United States",
    "portland": "United States",
    "miami": "United States",
    "houston": "United States",
    "dallas": "United States",
    "dc": "United States",
    "washington dc": "United States",
    # Canada
    "canada": "Canada",
    "toronto": "Canada",
    "vancouver": "Canada",
    "montreal": "Canada",
    "ottawa": "Canada",
    "calgary": "Canada",
    "edmonton": "Canada",
    "winnipeg": "Canada",
    "quebec": "Canada",
    # United Kingdom
    "uk": "United Kingdom",
    "united kingdom": "United Kingdom",
    "england": "United Kingdom",
    "scotland": "United Kingdom",
    "wales": "United Kingdom",
    "northern ireland": "United Kingdom",
    "london": "United Kingdom",
    "manchester": "United Kingdom",
    "edinburgh": "United Kingdom",
    "glasgow": "United Kingdom",
    "birmingham": "United Kingdom",
    "bristol": "United Kingdom",
    "cambridge": "United Kingdom",
    "oxford": "United Kingdom",
    # Ireland
    "ireland": "Ireland",
    "dublin": "Ireland",
    "cork": "Ireland",
    "galway": "Ireland",
    # Australia
    "australia": "Australia",
    "sydney": "Australia",
    "melbourne": "Australia",
    "brisbane": "Australia",
    "perth": "Australia",
    "adelaide": "Australia",
    # India
    "india": "India",
    "bangalore": "India",
    "bengaluru": "India",
    "hyderabad": "India",
    "pune": "India",
    "delhi": "India",
    "new delhi": "India",
    "mumbai": "India",
    "gurgaon": "India",
    "noida": "India",
    "chennai": "India",
    # Germany
    "germany": "Germany",
    "berlin": "Germany",
    "munich": "Germany",
    "frankfurt": "Germany",
    "hamburg": "Germany",
    "stuttgart": "Germany",
    # France
    "france": "France",
    "paris": "France",
    "lyon": "France",
    "toulouse": "France",
    # Other Europe
    "netherlands": "Netherlands",
    "amsterdam": "Netherlands",
    "rotterdam": "Netherlands",
    "hague": "Netherlands",
    "sweden": "Sweden",
    "stockholm": "Sweden",
    "gothenburg": "Sweden",
    "switzerland": "Switzerland",
    "zurich": "Switzerland",
    "geneva": "Switzerland",
    "spain": "Spain",
    "madrid": "Spain",
    "barcelona": "Spain",
    "italy": "Italy",
    "milan": "Italy",
    "rome": "Italy",
    # Asia
    "singapore": "Singapore",
    "hong kong": "Hong Kong",
    "china": "China",
    "shanghai": "China",
    "beijing": "China",
    "shenzhen": "China",
    "japan": "Japan",
    "tokyo": "Japan",
    "osaka": "Japan",
    "kyoto": "Japan",
}

# Countries Microsoft's search accepts verbatim in the query string.
MICROSOFT_COUNTRIES = frozenset(
    {
        "United States",
        "Canada",
        "United Kingdom",
        "Germany",
        "France",
        "India",
        "Australia",
        "Ireland",
        "Netherlands",
        "Singapore",
    }
)

# TikTok city codes, as they appear in the careers API's city_info.
TIKTOK_CITY_CODES: Dict[str, str] = {
    "seattle": "CT_157",
    "san francisco": "CT_75",
    "new york": "CT_114",
    "los angeles": "CT_94",
    "austin": "CT_247",
    "chicago": "CT_221",
    "mountain view": "CT_243",
    "san jose": "CT_1103355",
    "washington d.c.": "CT_233",
    "dc": "CT_233",
    "boston": "CT_114",
    "london": "CT_93",
    "dublin": "CT_37",
    "paris": "CT_5",
    "berlin": "CT_6",
    "amsterdam": "CT_100766",
    "singapore": "CT_163",
    "tokyo": "CT_34",
    "sydney": "CT_244",
    "bangalore": "CT_44",
    "gurgaon": "CT_44",
    "stockholm": "CT_1102285",
    "copenhagen": "CT_101458",
    "munich": "CT_226",
    "madrid": "CT_96",
    "milan": "CT_204",
    "brussels": "CT_235",
    "warsaw": "CT_209",
    "istanbul": "CT_206",
    "dubai": "CT_33",
    "tel aviv": "CT_249",
    "jakarta": "CT_169",
    "bangkok": "CT_98",
    "kuala lumpur": "CT_65",
    "seoul": "CT_134",
    "ho chi minh city": "CT_60",
}

TIKTOK_STATE_CODES: Dict[str, List[str]] = {
    "washington": ["CT_157"],
    "wa": ["CT_157"],
    "california": ["CT_75", "CT_94", "CT_243", "CT_1103355"],
    "ca": ["CT_75", "CT_94", "CT_243", "CT_1103355"],
    "new york": ["CT_114"],
    "ny": ["CT_114"],
    "texas": ["CT_247"],
    "tx": ["CT_247"],
}

# Meta filters by named office strings.
META_OFFICES: Dict[str, str] = {
    "seattle": "Seattle, WA",
    "bellevue": "Bellevue, WA",
    "redmond": "Redmond, WA",
    "vancouver": "Vancouver, WA",
    "menlo park": "Menlo Park, CA",
    "menlo": "Menlo Park, CA",
    "san francisco": "San Francisco, CA",
    "sf": "San Francisco, CA",
    "new york": "New York, NY",
    "nyc": "New York, NY",
    "ny": "New York, NY",
    "boston": "Boston, MA",
    "austin": "Austin, TX",
    "los angeles": "Los Angeles, CA",
    "la": "Los Angeles, CA",
    "chicago": "Chicago, IL",
    "washington": "Washington, DC",
    "dc": "Washington, DC",
    "sunnyvale": "Sunnyvale, CA",
    "mountain view": "Mountain View, CA",
    "burlingame": "Burlingame, CA",
    "fremont": "Fremont, CA",
    "irvine": "Irvine, CA",
    "san diego": "San Diego, CA",
    "santa clara": "Santa Clara, CA",
    "sausalito": "Sausalito, CA",
    "san mateo": "San Mateo, CA",
    "pasadena": "Pasadena, CA",
    "northridge": "Northridge, CA",
    "foster city": "Foster City, CA",
    "newark": "Newark, CA",
    "miami": "Miami, Florida",
    "pittsburgh": "Pittsburgh, PA",
    "detroit": "Detroit, MI",
    "denver": "Denver, CO",
    "reston": "Reston, VA",
    "ashburn": "Ashburn, VA",
    "houston": "Houston, TX",
    "fort worth": "Fort Worth, TX",
    "wa": "Seattle, WA",
    "ca": "San Francisco, CA",
    "tx": "Austin, TX",
    "ma": "Boston, MA",
    "il": "Chicago, IL",
    "co": "Denver, CO",
    "va": "Reston, VA",
    "london": "London, UK",
    "dublin": "Dublin, Ireland",
    "paris": "Paris, France",
    "berlin": "Berlin, Germany",
    "amsterdam": "Amsterdam, Netherlands",
    "toronto": "Toronto, ON",
    "montreal": "Montreal, Canada",
    "vancouver canada": "Vancouver, Canada",
    "singapore": "Singapore",
    "tokyo": "Tokyo, Japan",
    "sydney": "Sydney, Australia",
    "melbourne": "Melbourne, Australia",
    "bangalore": "Bangalore, India",
    "hyderabad": "Hyderabad, India",
    "mumbai": "Mumbai, India",
    "new delhi": "New Delhi, India",
    "delhi": "New Delhi, India",
    "tel aviv": "Tel Aviv, Israel",
    "seoul": "Seoul, South Korea",
    "hong kong": "Hong Kong",
    "shanghai": "Shanghai, China",
    "remote": "Remote, US",
    "remote us": "Remote, US",
    "remote usa": "Remote, US",
    "remote canada": "Remote, Canada",
    "remote uk": "Remote, UK",
}

_SEGMENT_SPLIT = re.compile(r"[,;]")


def _split_filter(location_filter: str) -> List[str]:
    return [part.strip() for part in (location_filter or "").split(",") if part.strip()]


def extract_target_countries(location_filter: str) -> Set[str]:
    """Countries the filter refers to; United States + Canada when empty or unrecognized."""
    lowered = (location_filter or "").strip().lower()
    if not lowered:
        return set(DEFAULT_COUNTRIES)
    countries = {country for keyword, country in COUNTRY_KEYWORDS.items() if keyword in lowered}
    return countries or set(DEFAULT_COUNTRIES)


def microsoft_location_params(location_filter: str) -> List[str]:
    countries = extract_target_countries(location_filter)
    return sorted(country for country in countries if country in MICROSOFT_COUNTRIES)


def tiktok_location_codes(location_filter: str) -> List[str]:
    codes: List[str] = []
    for location in _split_filter(location_filter):
        lowered = location.lower()
        if "remote" in lowered:
            continue
        if lowered in TIKTOK_CITY_CODES:
            matched = [TIKTOK_CITY_CODES[lowered]]
        else:
            matched = TIKTOK_STATE_CODES.get(lowered, [])
        for code in matched:
            if code not in codes:
                codes.append(code)
    return codes


def meta_offices(location_filter: str) -> List[str]:
    offices: List[str] = []
    for keyword in _split_filter(location_filter.lower() if location_filter else ""):
        office = META_OFFICES.get(keyword)
        if office is not None:
            if office not in offices:
                offices.append(office)
            continue
        for key, candidate in META_OFFICES.items():
            if (keyword in key or key in keyword) and candidate not in offices:
                offices.append(candidate)
                break
    return offices


@dataclass(frozen=True)
class ParsedLocation:
    """Positional split of a raw location string.

    Last segment is the country, the second-to-last is the state when there
    are three or more segments; anything in between is dropped.
    """

    raw: str
    city: str
    state: str
    country: str
    is_remote: bool
    is_multiple: bool

    @classmethod
    def parse(cls, raw: str) -> "ParsedLocation":
        raw = raw or ""
        lowered = raw.lower()
        parts = [part.strip() for part in _SEGMENT_SPLIT.split(raw) if part.strip()]
        if len(parts) >= 3:
            city, state, country = parts[0], parts[-2], parts[-1]
        elif len(parts) == 2:
            city, state, country = parts[0], "", parts[1]
        else:
            city, state, country = "", "", raw.strip()
        return cls(
            raw=raw,
            city=city,
            state=state,
            country=country,
            is_remote="remote" in lowered,
            is_multiple="multiple locations" in lowered,
        )

    @property
    def display_string(self) -> str:
        if self.is_multiple:
            return f"Multiple Locations, {self.country}"
        if self.city and self.state:
            return f"{self.city}, {self.state}"
        if self.state:
            return self.state
        return self.country
