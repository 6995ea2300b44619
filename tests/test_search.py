from app.services.search_service import normalize_query, score_document


class _Doc:
    def __init__(self, title, subject="mathematics", description=None, downloads=0, views=0, upvotes=0):
        self.title = title
        self.subject = subject
        self.description = description
        self.downloads = downloads
        self.views = views
        self.upvotes = upvotes


# ── Pure helpers ──────────────────────────────────────────────

class TestNormalizeQuery:
    def test_case_whitespace_and_punctuation(self):
        assert normalize_query("  Maths   Past-Paper 2019!! ") == "maths pastpaper 2019"

    def test_empty(self):
        assert normalize_query("?!") == ""


class TestScoring:
    def test_exact_subject_beats_title_match(self):
        exact = score_document(_Doc("Chapter 1"), "maths", ["mathematics"], "mathematics")
        title_only = score_document(_Doc("maths tips", subject="science"), "maths", ["mathematics"], "mathematics")
        assert exact == 180
        assert title_only == 60 + 20 + 15

    def test_popularity_is_capped(self):
        base = score_document(_Doc("x"), "zzz", [], None)
        popular = score_document(_Doc("x", downloads=500, views=9000, upvotes=100), "zzz", [], None)
        assert base == 0
        assert popular == 30

    def test_description_match(self):
        assert score_document(_Doc("x", description="covers algebra"), "algebra", [], None) == 30


# ── Endpoints ─────────────────────────────────────────────────

class TestSearchEndpoint:
    def test_title_search(self, client, make_document):
        make_document("Chemistry Bonds", subject="science", downloads=3)
        make_document("Chemistry Acids", subject="science", downloads=8)
        make_document("Algebra")

        data = client.get("/api/search", params={"query": "chemistry"}).json()["data"]
        assert [d["title"] for d in data["items"]] == ["Chemistry Acids", "Chemistry Bonds"]
        assert data["total"] == 2
        assert data["hasMore"] is False

    def test_subject_name_search(self, client, make_document):
        make_document("Unit 4", subject="geography")
        items = client.get("/api/search", params={"query": "Geography"}).json()["data"]["items"]
        assert [d["title"] for d in items] == ["Unit 4"]

    def test_like_wildcards_are_literal(self, client, make_document):
        make_document("Algebra")
        assert client.get("/api/search", params={"query": "%"}).json()["data"]["total"] == 0

    def test_has_more_when_page_is_full(self, client, make_document):
        make_document("History One", subject="history")
        make_document("History Two", subject="history")
        data = client.get("/api/search", params={"query": "history", "limit": 2}).json()["data"]
        assert data["hasMore"] is True

    def test_empty_result_logged(self, client, db_session):
        from app.models.failed_search import FailedSearch

        client.get("/api/search", params={"query": "Korean Grammar", "medium": "english"})
        client.get("/api/search", params={"query": "korean  grammar!"})

        row = db_session.query(FailedSearch).one()
        assert row.normalized_query == "korean grammar"
        assert row.search_count == 2
        assert row.medium == "english"


class TestFailedSearchEndpoint:
    def test_log_failed_search(self, client, db_session):
        from app.models.failed_search import FailedSearch

        resp = client.post("/api/search/failed", json={"query": "Pali grammar", "documentType": "book"})
        assert resp.status_code == 200, resp.text
        assert resp.json()["data"] == {"logged": True}
        assert db_session.query(FailedSearch).one().document_type == "book"

    def test_punctuation_only_not_logged(self, client):
        resp = client.post("/api/search/failed", json={"query": "???"})
        assert resp.json()["data"] == {"logged": False}

    def test_empty_query_rejected(self, client):
        assert client.post("/api/search/failed", json={"query": ""}).status_code == 400
