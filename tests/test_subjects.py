from app.domains.documents.subjects import (
    SUBJECTS,
    SUBJECT_IDS,
    find_literature_subject_ids,
    find_matching_subject_ids,
    find_subject_id_from_display_name,
    find_subject_id_from_query,
    get_subject_display_name,
    is_literature_query,
    is_valid_subject,
    search_subjects,
)


class TestCatalogue:
    def test_ids_are_unique(self):
        assert len(SUBJECT_IDS) == len(set(SUBJECT_IDS))
        assert len(SUBJECTS) == len(SUBJECT_IDS)

    def test_full_catalogue(self):
        assert len(SUBJECTS) == 47

    def test_display_name_lookup(self):
        assert get_subject_display_name("mathematics") == "Mathematics"
        assert get_subject_display_name("ict") == "Information & Communication Technology"

    def test_unknown_id_falls_back_to_id(self):
        assert get_subject_display_name("astrology") == "astrology"

    def test_is_valid_subject(self):
        assert is_valid_subject("business_accounting")
        assert not is_valid_subject("Business")


class TestQueryMatching:
    def test_exact_match_on_search_term(self):
        assert find_subject_id_from_query("Maths") == "mathematics"
        assert find_subject_id_from_query("  ICT ") == "ict"

    def test_exact_match_on_display_name(self):
        assert find_subject_id_from_query("Geography") == "geography"

    def test_no_exact_match(self):
        assert find_subject_id_from_query("grade 11 revision") is None

    def test_umbrella_word_expands(self):
        ids = find_matching_subject_ids("music")
        assert {"music_oriental", "music_western", "music_carnatic"} <= set(ids)

    def test_partial_words_match(self):
        ids = find_matching_subject_ids("english literature notes")
        assert "english" in ids
        assert "english_literary_texts" in ids

    def test_short_words_are_ignored(self):
        assert "health_physical_education" not in find_matching_subject_ids("a pe")

    def test_empty_query(self):
        assert find_matching_subject_ids("   ") == []

    def test_search_subjects_empty_returns_all(self):
        assert len(search_subjects("")) == len(SUBJECTS)

    def test_search_subjects_substring(self):
        ids = [s.id for s in search_subjects("dancing")]
        assert ids == ["dancing_oriental", "dancing_bharata"]


class TestDisplayNameResolution:
    def test_exact_display_name(self):
        assert find_subject_id_from_display_name("Business & Accounting Studies") == "business_accounting"

    def test_ampersand_spelled_out(self):
        assert find_subject_id_from_display_name("Business and Accounting Studies") == "business_accounting"

    def test_empty(self):
        assert find_subject_id_from_display_name("") is None


class TestLiterature:
    def test_literature_ids(self):
        assert find_literature_subject_ids() == [
            "english_literary_texts", "sinhala_literary_texts",
            "tamil_literary_texts", "arabic_literary_texts",
        ]

    def test_is_literature_query(self):
        assert is_literature_query(" Literature ")
        assert not is_literature_query("english literature")
