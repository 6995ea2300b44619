"""The 52 Sri Lankan O-Level subjects and the query matching used by search."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Subject:
    id: str
    display_name: str
    search_terms: tuple[str, ...]


_LITERARY = ("literature", "lit")

SUBJECTS: list[Subject] = [
    # Religion
    Subject("buddhism", "Buddhism", ("buddhism", "buddha", "dharma")),
    Subject("catholicism", "Catholicism", ("catholicism", "catholic")),
    Subject("saivanery", "Saivanery", ("saivanery", "saiva", "hindu")),
    Subject("christianity", "Christianity", ("christianity", "christian", "bible")),
    Subject("islam", "Islam", ("islam", "muslim", "quran")),
    # Core
    Subject("english", "English", ("english", "eng")),
    Subject("sinhala_language_literature", "Sinhala Language & Literature",
            ("sinhala", "sinhala language", "sinhala literature")),
    Subject("tamil_language_literature", "Tamil Language & Literature",
            ("tamil", "tamil language", "tamil literature")),
    Subject("mathematics", "Mathematics", ("mathematics", "maths", "math")),
    Subject("history", "History", ("history",)),
    Subject("science", "Science", ("science", "general science")),
    # Category I
    Subject("civic_education", "Civic Education", ("civic education", "civics")),
    Subject("business_accounting", "Business & Accounting Studies",
            ("business", "accounting", "commerce")),
    Subject("geography", "Geography", ("geography", "geo")),
    Subject("entrepreneurship", "Entrepreneurship Studies",
            ("entrepreneurship", "business studies")),
    Subject("second_language_sinhala", "Second Language (Sinhala)",
            ("second language sinhala", "sinhala second")),
    Subject("second_language_tamil", "Second Language (Tamil)",
            ("second language tamil", "tamil second")),
    Subject("pali", "Pali", ("pali",)),
    Subject("sanskrit", "Sanskrit", ("sanskrit",)),
    Subject("french", "French", ("french",)),
    Subject("german", "German", ("german",)),
    Subject("hindi", "Hindi", ("hindi",)),
    Subject("japanese", "Japanese", ("japanese",)),
    Subject("arabic", "Arabic", ("arabic",)),
    Subject("korean", "Korean", ("korean",)),
    Subject("chinese", "Chinese", ("chinese",)),
    Subject("russian", "Russian", ("russian",)),
    # Category II
    Subject("music_oriental", "Music (Oriental)", ("music oriental", "oriental music")),
    Subject("music_western", "Music (Western)", ("music western", "western music")),
    Subject("music_carnatic", "Music (Carnatic)", ("music carnatic", "carnatic music")),
    Subject("dancing_oriental", "Art Dancing (Oriental)",
            ("dancing oriental", "oriental dancing", "art dancing")),
    Subject("dancing_bharata", "Dancing (Bharata)",
            ("dancing bharata", "bharata dancing", "bharatanatyam")),
    Subject("english_literary_texts", "Appreciation of English Literary Texts",
            ("english literature", "english literary texts") + _LITERARY),
    Subject("sinhala_literary_texts", "Appreciation of Sinhala Literary Texts",
            ("sinhala literature", "sinhala literary texts") + _LITERARY),
    Subject("tamil_literary_texts", "Appreciation of Tamil Literary Texts",
            ("tamil literature", "tamil literary texts") + _LITERARY),
    Subject("arabic_literary_texts", "Appreciation of Arabic Literary Texts",
            ("arabic literature", "arabic literary texts") + _LITERARY),
    Subject("drama_theatre", "Drama and Theatre", ("drama", "theatre", "drama and theatre")),
    # Category III
    Subject("ict", "Information & Communication Technology",
            ("ict", "information technology", "computer", "computing")),
    Subject("agriculture_food_technology", "Agriculture & Food Technology",
            ("agriculture", "food technology", "farming")),
    Subject("aquatic_bioresources", "Aquatic Bioresources Technology",
            ("aquatic bioresources", "aquatic resources", "marine biology")),
    Subject("art_crafts", "Art & Crafts", ("art and crafts", "arts", "crafts")),
    Subject("home_economics", "Home Economics", ("home economics", "home science")),
    Subject("health_physical_education", "Health & Physical Education",
            ("health and physical education", "physical education", "sports", "pe")),
    Subject("communication_media", "Communication & Media Studies",
            ("communication and media", "media studies")),
    Subject("design_construction", "Design & Construction Technology",
            ("design and construction", "construction technology")),
    Subject("design_mechanical", "Design & Mechanical Technology",
            ("design and mechanical", "mechanical technology")),
    Subject("design_electrical_electronic", "Design, Electrical & Electronic Technology",
            ("design electrical electronic", "electrical technology",
             "electronic technology", "electronics")),
]

SUBJECT_IDS: list[str] = [s.id for s in SUBJECTS]

_BY_ID = {s.id: s for s in SUBJECTS}

_LITERATURE_IDS = [
    "english_literary_texts", "sinhala_literary_texts",
    "tamil_literary_texts", "arabic_literary_texts",
]
_DESIGN_IDS = ["design_construction", "design_mechanical", "design_electrical_electronic"]
_TECH_IDS = ["ict", "agriculture_food_technology", *_DESIGN_IDS]
_RELIGION_IDS = ["buddhism", "catholicism", "saivanery", "christianity", "islam"]

# Umbrella words that students type but that are not a subject on their own
SPECIAL_MAPPINGS: dict[str, list[str]] = {
    "literature": _LITERATURE_IDS,
    "literary": _LITERATURE_IDS,
    "lit": _LITERATURE_IDS,
    "music": ["music_oriental", "music_western", "music_carnatic"],
    "dancing": ["dancing_oriental", "dancing_bharata"],
    "dance": ["dancing_oriental", "dancing_bharata"],
    "design": _DESIGN_IDS,
    "technology": _TECH_IDS,
    "tech": _TECH_IDS,
    "language": [
        "english", "sinhala_language_literature", "tamil_language_literature",
        "second_language_sinhala", "second_language_tamil",
    ],
    "religion": _RELIGION_IDS,
    "religious": _RELIGION_IDS,
}


def get_subject_by_id(subject_id: str) -> Subject | None:
    return _BY_ID.get(subject_id)


def get_subject_display_name(subject_id: str) -> str:
    subject = _BY_ID.get(subject_id)
    return subject.display_name if subject else subject_id


def is_valid_subject(subject_id: str) -> bool:
    return subject_id in _BY_ID


def search_subjects(query: str) -> list[Subject]:
    """Subjects whose name, id or a search term contains the query."""
    q = query.lower().strip()
    if not q:
        return list(SUBJECTS)
    return [
        s for s in SUBJECTS
        if q in s.display_name.lower()
        or q in s.id
        or any(q in term for term in s.search_terms)
    ]


def find_subject_id_from_query(query: str) -> str | None:
    """Exact match on display name, id or search term. None if nothing matches."""
    q = query.lower().strip()
    for s in SUBJECTS:
        if s.display_name.lower() == q or s.id == q or q in s.search_terms:
            return s.id
    return None


def find_subject_id_from_display_name(name: str) -> str | None:
    """Map an LLM-returned subject name back to an id, tolerating loose spelling."""
    if not name:
        return None
    q = name.lower().strip()
    for s in SUBJECTS:
        if s.display_name.lower() == q:
            return s.id
    found = find_subject_id_from_query(q)
    if found:
        return found
    normalized = q.replace("&", "and").replace("(", "").replace(")", "")
    for s in SUBJECTS:
        display = s.display_name.lower().replace("&", "and").replace("(", "").replace(")", "")
        if display == normalized or display.endswith(normalized) or normalized.endswith(display):
            return s.id
    return None


def _matches_fragment(subject: Subject, fragment: str) -> bool:
    return (
        fragment in subject.display_name.lower()
        or fragment in subject.id
        or any(fragment in term for term in subject.search_terms)
    )


def find_matching_subject_ids(query: str) -> list[str]:
    """All subject ids related to a free-text query.

    Combines the umbrella mappings above with exact, partial and
    reverse-partial matches, so "english literature notes" finds both
    ``english`` and ``english_literary_texts``. Order follows SUBJECTS,
    with umbrella matches first.
    """
    q = query.lower().strip()
    matched: dict[str, None] = {}
    if not q:
        return []

    for subject_id in SPECIAL_MAPPINGS.get(q, []):
        matched[subject_id] = None

    words = [w for w in q.split() if len(w) >= 3]
    for s in SUBJECTS:
        # Exact matches are a subset of partial matches
        if _matches_fragment(s, q):
            matched[s.id] = None
            continue
        if any(_matches_fragment(s, w) for w in words):
            matched[s.id] = None

    return list(matched)


def find_literature_subject_ids() -> list[str]:
    return [
        s.id for s in SUBJECTS
        if "literary_texts" in s.id or "literary" in s.display_name.lower()
    ]


def is_literature_query(query: str) -> bool:
    return query.lower().strip() in {
        "literature", "literary", "literature texts", "literary texts",
    }
