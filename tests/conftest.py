import base64
import io
import os
import sys
import time

import pytest
from fastapi.testclient import TestClient
from jose import jwt

TEST_JWT_KEY = "studyshare-test-signing-key"
TEST_WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"studyshare-test-webhook-secret").decode()
TEST_PUBLIC_URL = "https://files.studyshare.test"


def _make_token(clerk_id: str, **claims) -> str:
    now = int(time.time())
    payload = {"sub": clerk_id, "iat": now, "exp": now + 3600, **claims}
    return jwt.encode(payload, TEST_JWT_KEY, algorithm="HS256")


@pytest.fixture(scope="session")
def test_db_url(tmp_path_factory):
    db_path = tmp_path_factory.mktemp("db") / "test_studyshare.db"
    return f"sqlite:///{db_path}"


@pytest.fixture(scope="session")
def app(test_db_url):
    os.environ.update({
        "DATABASE_URL": test_db_url,
        "ENVIRONMENT": "test",
        "LOG_TO_FILE": "false",
        "CLERK_JWT_KEY": TEST_JWT_KEY,
        "CLERK_JWT_ALGORITHM": "HS256",
        "CLERK_ISSUER": "",
        "CLERK_WEBHOOK_SECRET": TEST_WEBHOOK_SECRET,
        "OPENROUTER_API_KEY": "",
        "R2_ACCOUNT_ID": "",
        "R2_PUBLIC_URL": TEST_PUBLIC_URL,
    })

    # Drop every cached app module so nothing keeps the default settings or engine
    for module_name in list(sys.modules):
        if module_name in ("main", "app") or module_name.startswith("app."):
            del sys.modules[module_name]

    import app.db.database as database
    import app.models  # noqa: F401
    import main as main_module

    app_instance = main_module.app
    app_instance.router.on_startup.clear()
    app_instance.router.on_shutdown.clear()

    database.Base.metadata.create_all(bind=database.engine)
    return app_instance


@pytest.fixture()
def clean_tables(app):
    yield
    from app.db.database import Base, engine

    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db_session(app, clean_tables):
    from app.db.database import SessionLocal
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(app, clean_tables):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def auth():
    """Bearer headers for a Clerk session belonging to ``clerk_id``."""
    def _auth(clerk_id: str, **claims) -> dict:
        return {"Authorization": f"Bearer {_make_token(clerk_id, **claims)}"}
    return _auth


# ── Factories ─────────────────────────────────────────────────

@pytest.fixture()
def make_user(db_session):
    from app.models.user import User, UserRole

    def _make(clerk_id: str, role: UserRole = UserRole.USER, **fields) -> User:
        user = db_session.query(User).filter(User.clerk_id == clerk_id).first()
        if user:
            return user
        values = {"email": f"{clerk_id}@test.com", "name": clerk_id}
        values.update(fields)
        user = User(clerk_id=clerk_id, role=role, **values)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_document(db_session):
    from app.models.document import Document, DocumentStatus, DocumentType, Medium

    def _make(title: str = "Maths Short Note", **fields) -> Document:
        values = {
            "title": title,
            "file_path": f"{TEST_PUBLIC_URL}/documents/{title.replace(' ', '-').lower()}.pdf",
            "file_size": 1024,
            "type": DocumentType.SHORT_NOTE,
            "subject": "mathematics",
            "medium": Medium.ENGLISH,
            "status": DocumentStatus.APPROVED,
        }
        values.update(fields)
        doc = Document(**values)
        db_session.add(doc)
        db_session.commit()
        db_session.refresh(doc)
        return doc

    return _make


@pytest.fixture()
def pdf_bytes():
    """A real three-page PDF drawn with reportlab."""
    from reportlab.lib.pagesizes import A4
    from reportlab.pdfgen import canvas

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    for page in range(1, 4):
        pdf.drawString(72, 760, f"Page {page} of the revision notes")
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


@pytest.fixture()
def fake_storage(app, monkeypatch):
    """In-memory R2 bucket. Returns the dict of key -> bytes."""
    from app.services import storage, thumbnails

    bucket: dict[str, bytes] = {}

    def upload_file(data, key, content_type):
        bucket[key] = data
        return f"{TEST_PUBLIC_URL}/{key}"

    def get_file(key):
        if key not in bucket:
            raise storage.StorageError(f"Failed to fetch {key}")
        return bucket[key]

    def delete_file(key):
        bucket.pop(key, None)

    def copy_file(source_key, dest_key):
        bucket[dest_key] = get_file(source_key)
        return f"{TEST_PUBLIC_URL}/{dest_key}"

    def list_objects(prefix=""):
        return [(k, len(v)) for k, v in bucket.items() if k.startswith(prefix)]

    monkeypatch.setattr(storage, "upload_file", upload_file)
    monkeypatch.setattr(storage, "get_file", get_file)
    monkeypatch.setattr(storage, "delete_file", delete_file)
    monkeypatch.setattr(storage, "copy_file", copy_file)
    monkeypatch.setattr(storage, "list_objects", list_objects)
    monkeypatch.setattr(
        thumbnails, "generate_and_upload_thumbnail",
        lambda document_id, data: upload_file(b"jpeg", thumbnails.thumbnail_key(document_id), "image/jpeg"),
    )
    return bucket
