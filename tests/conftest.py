import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from prosupps.config import settings
from prosupps.database.supabase_client import SupabaseClient
from prosupps.modules.auth import service as auth_service


class FakeAuthError(Exception):
    def __init__(self, message, status):
        super().__init__(message)
        self.message = message
        self.status = status


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.ordering = None

    def select(self, *columns):
        self.op = "select"
        return self

    def insert(self, data):
        self.op = "insert"
        self.payload = data
        return self

    def update(self, data):
        self.op = "update"
        self.payload = data
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.ordering = (column, desc)
        return self

    def _matches(self, row):
        return all(row.get(c) == v for c, v in self.filters)

    def execute(self):
        self.db.calls.append((self.op, self.table))
        self.db.raise_injected(self.table, self.op)
        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "select":
            found = [dict(r) for r in rows if self._matches(r)]
            if self.ordering:
                column, desc = self.ordering
                found.sort(key=lambda r: r.get(column) or "", reverse=desc)
            return FakeResponse(found)
        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in items:
                row = dict(item)
                row.setdefault("id", str(uuid.uuid4()))
                stamp = self.db.next_timestamp()
                row.setdefault("created_at", stamp)
                row.setdefault("updated_at", stamp)
                rows.append(row)
                created.append(dict(row))
            return FakeResponse(created)
        if self.op == "update":
            changed = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    changed.append(dict(row))
            return FakeResponse(changed)
        removed = [r for r in rows if self._matches(r)]
        self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
        return FakeResponse([dict(r) for r in removed])


class FakeBucket:
    def __init__(self, db, name):
        self.db = db
        self.name = name

    def upload(self, path, file, file_options=None):
        self.db.calls.append(("upload", self.name))
        self.db.raise_injected(self.name, "upload")
        self.db.uploads.append({"bucket": self.name, "path": path, "size": len(file), "options": file_options})
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://fake.supabase.co/storage/v1/object/public/{self.name}/{path}"


class FakeStorage:
    def __init__(self, db):
        self.db = db

    def from_(self, bucket):
        return FakeBucket(self.db, bucket)


class FakeAuth:
    def __init__(self, db):
        self.db = db
        self.users = {}
        self.tokens = {}
        self.sign_up_error = None
        self.admin = FakeAuthAdmin(self)

    def add_user(self, email, password="secret123", metadata=None):
        user = SimpleNamespace(
            id=str(uuid.uuid4()),
            email=email,
            user_metadata=metadata or {},
            app_metadata={},
            created_at="2024-01-01T00:00:00+00:00",
            updated_at=None,
        )
        self.users[email] = (user, password)
        return user

    def sign_up(self, credentials):
        self.db.calls.append(("sign_up", "auth"))
        if self.sign_up_error:
            raise FakeAuthError(self.sign_up_error, 429)
        if credentials["email"] in self.users:
            raise FakeAuthError("User already registered", 422)
        metadata = credentials.get("options", {}).get("data", {})
        user = self.add_user(credentials["email"], credentials["password"], metadata)
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, credentials):
        self.db.calls.append(("sign_in", "auth"))
        entry = self.users.get(credentials["email"])
        if entry is None or entry[1] != credentials["password"]:
            raise FakeAuthError("Invalid login credentials", 400)
        user = entry[0]
        token = f"token-{user.id}"
        self.tokens[token] = user
        return SimpleNamespace(user=user, session=SimpleNamespace(access_token=token))

    def get_user(self, jwt=None):
        user = self.tokens.get(jwt)
        if user is None:
            raise FakeAuthError("invalid JWT: unable to parse or verify signature", 401)
        return SimpleNamespace(user=user)


class FakeAuthAdmin:
    def __init__(self, auth):
        self.auth = auth
        self.signed_out = []

    def sign_out(self, jwt, scope="global"):
        self.auth.db.calls.append(("sign_out", "auth"))
        self.signed_out.append(jwt)
        self.auth.tokens.pop(jwt, None)


class FakeSupabase:
    """In-memory stand-in for supabase.Client covering the calls the app makes."""

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.uploads = []
        self.failures = {}
        self._clock = 0
        self.auth = FakeAuth(self)
        self.storage = FakeStorage(self)

    def table(self, name):
        return FakeQuery(self, name)

    def next_timestamp(self):
        self._clock += 1
        return datetime(2024, 1, 1, 0, 0, self._clock % 60, tzinfo=timezone.utc).isoformat()

    def fail(self, target, op, *errors):
        """Make the next len(errors) `op` calls on `target` raise the given errors in order."""
        self.failures.setdefault((target, op), []).extend(errors)

    def raise_injected(self, target, op):
        pending = self.failures.get((target, op))
        if pending:
            raise pending.pop(0)

    def writes(self):
        return [c for c in self.calls if c[0] in ("insert", "update", "delete", "upload")]


@pytest.fixture
def fake_supabase(monkeypatch):
    fake = FakeSupabase()
    SupabaseClient.use_clients(fake, fake)
    monkeypatch.setattr(settings, "write_retry_base_delay", 0.0)
    monkeypatch.setattr(settings, "write_min_spacing_ms", 0)
    monkeypatch.setattr(settings, "refresh_delay_on_activate", 0.0)
    auth_service._AUTH_USER_CACHE.clear()
    yield fake
    auth_service._AUTH_USER_CACHE.clear()
    SupabaseClient.reset_client()


@pytest.fixture
def client(fake_supabase):
    from prosupps.main import app, limiter
    limiter.reset()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_product(fake_supabase):
    def factory(**fields):
        return add_product_row(fake_supabase, **fields)
    return factory


@pytest.fixture
def login(client, fake_supabase):
    def do_login(email, role=None, **kwargs):
        return login_as(client, fake_supabase, email, role=role, **kwargs)
    return do_login


def add_product_row(fake, **fields):
    row = {
        "id": str(uuid.uuid4()),
        "name": "Whey",
        "description": None,
        "price": 10.0,
        "category": "protein",
        "weight": None,
        "flavor": None,
        "stock": 0,
        "image_url": None,
        "images": [],
        "specifications": {},
        "created_at": fake.next_timestamp(),
        "updated_at": None,
    }
    row.update(fields)
    fake.tables.setdefault("products", []).append(row)
    return row


def login_as(client, fake, email, role=None, password="secret123", full_name=None):
    """Create the auth user (and an existing profile row when role is given) and log in."""
    user = fake.auth.add_user(email, password, {"full_name": full_name} if full_name else None)
    if role is not None:
        fake.tables.setdefault("users", []).append({
            "id": user.id,
            "email": email,
            "full_name": full_name or "",
            "avatar_url": None,
            "role": role,
            "created_at": "2024-01-01T00:00:00+00:00",
            "updated_at": "2024-01-01T00:00:00+00:00",
        })
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
