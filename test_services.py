# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Relief Service — Service & Repository Tests
=============================================
Exercise the registry, the document store backends and the upstream clients
without going through HTTP.
"""
import json
import sqlite3
import threading
from unittest.mock import MagicMock, patch

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from relief_service.core.database import build_engine
from relief_service.core.errors import (
    AlreadyAcceptedError,
    AuthenticationError,
    DuplicateAccountError,
    NotAcceptedError,
    NotFoundError,
    StorageError,
    UpstreamError,
    ValidationError,
)
from relief_service.core.security import decode_token, hash_password, verify_password
from relief_service.models.domain import Emergency
from relief_service.repositories import (
    AccountRepository,
    EmergencyRepository,
    JsonDocumentStore,
    SqlDocumentStore,
)
from relief_service.services.account_service import AccountService
from relief_service.services.chat_client import ChatClient, ChatNotConfiguredError
from relief_service.services.emergency_service import EmergencyService
from relief_service.services.prediction_client import PredictionClient


@pytest.fixture(params=["json", "sql"])
def store(request, tmp_path):
    if request.param == "json":
        doc = JsonDocumentStore(tmp_path / "db.json")
    else:
        doc = SqlDocumentStore(build_engine(f"sqlite:///{tmp_path / 'db.sqlite'}"))
    doc.initialize()
    yield doc
    doc.dispose()


@pytest.fixture
def registry(store):
    return EmergencyService(EmergencyRepository(store))


@pytest.fixture
def accounts(store):
    return AccountService(AccountRepository(store))


# ═══════════════════════════════════════════════════════════════════════════
# EMERGENCY REGISTRY
# ═══════════════════════════════════════════════════════════════════════════
class TestEmergencyRegistry:
    def test_create_is_pending_with_no_volunteers(self, registry):
        e = registry.create_emergency("Fire", "Building fire", "u1")
        assert e.status == "pending"
        assert e.volunteers == []

    @pytest.mark.parametrize("args", [
        ("", "d", "r"), ("t", "  ", "r"), ("t", "d", ""), (None, "d", "r"),
    ])
    def test_create_rejects_blank_fields(self, registry, args):
        with pytest.raises(ValidationError):
            registry.create_emergency(*args)
        assert registry.list_emergencies() == []

    def test_list_empty_is_list(self, registry):
        assert registry.list_emergencies() == []

    def test_first_accept_sets_accepted(self, registry):
        e = registry.create_emergency("Fire", "Building fire", "u1")
        updated = registry.accept_emergency(e.id, "Alice")
        assert updated.status == "accepted"
        assert updated.volunteers == ["Alice"]

    def test_duplicate_accept_leaves_state(self, registry):
        e = registry.create_emergency("Fire", "Building fire", "u1")
        registry.accept_emergency(e.id, "Alice")
        with pytest.raises(AlreadyAcceptedError):
            registry.accept_emergency(e.id, "Alice")
        assert registry.get_emergency(e.id).volunteers == ["Alice"]

    def test_second_volunteer_appends(self, registry):
        e = registry.create_emergency("Fire", "Building fire", "u1")
        registry.accept_emergency(e.id, "Alice")
        updated = registry.accept_emergency(e.id, "Bob")
        assert updated.volunteers == ["Alice", "Bob"]
        assert updated.status == "accepted"

    def test_accept_unknown_id(self, registry, store):
        registry.create_emergency("Fire", "Building fire", "u1")
        before = store.read()
        with pytest.raises(NotFoundError):
            registry.accept_emergency("nope", "Alice")
        assert store.read() == before

    def test_accept_requires_inputs(self, registry):
        with pytest.raises(ValidationError):
            registry.accept_emergency("", "Alice")
        with pytest.raises(ValidationError):
            registry.accept_emergency("id", " ")

    def test_decline_round_trip(self, registry):
        e = registry.create_emergency("Flood", "Street flooded", "u2")
        registry.accept_emergency(e.id, "Alice")
        registry.accept_emergency(e.id, "Bob")
        assert registry.decline_emergency(e.id, "Alice").status == "accepted"
        after = registry.decline_emergency(e.id, "Bob")
        assert after.status == "pending"
        assert after.volunteers == []

    def test_decline_by_stranger(self, registry):
        e = registry.create_emergency("Flood", "Street flooded", "u2")
        registry.accept_emergency(e.id, "Alice")
        with pytest.raises(NotAcceptedError):
            registry.decline_emergency(e.id, "Mallory")
        assert registry.get_emergency(e.id).volunteers == ["Alice"]

    def test_get_unknown(self, registry):
        with pytest.raises(NotFoundError):
            registry.get_emergency("nope")

    def test_summary(self, registry):
        a = registry.create_emergency("A", "a", "u1")
        b = registry.create_emergency("B", "b", "u1")
        registry.create_emergency("C", "c", "u1")
        registry.accept_emergency(a.id, "Alice")
        registry.accept_emergency(b.id, "Alice")
        registry.accept_emergency(b.id, "Bob")
        assert registry.get_summary_stats() == {
            "total": 3, "pending": 1, "accepted": 2, "volunteers_engaged": 2,
        }

    def test_malformed_neighbour_does_not_block_accept(self, store, registry):
        e = registry.create_emergency("Fire", "Building fire", "u1")
        store.update("emergencies", lambda items: items.insert(0, {"id": "broken"}))
        after = registry.accept_emergency(e.id, "Alice")
        assert after.volunteers == ["Alice"]
        assert store.read_collection("emergencies")[0] == {"id": "broken"}

    def test_seed_gauges_runs(self, registry):
        registry.create_emergency("A", "a", "u1")
        registry.seed_gauges()


class TestEmergencyModel:
    def test_status_is_derived_not_stored(self):
        e = Emergency.model_validate({
            "id": 1700000000000, "title": "Old", "description": "legacy row",
            "user": "u1", "status": "pending", "volunteers": ["Zed"],
            "timestamp": "2024-01-01T00:00:00Z",
        })
        assert e.id == "1700000000000"
        assert e.reporter == "u1"
        assert e.created_at == "2024-01-01T00:00:00Z"
        assert e.status == "accepted"

    def test_dump_includes_status(self):
        e = Emergency(id="x", title="t", description="d", reporter="r",
                      created_at="2024-01-01T00:00:00Z")
        assert e.model_dump()["status"] == "pending"


# ═══════════════════════════════════════════════════════════════════════════
# DOCUMENT STORE
# ═══════════════════════════════════════════════════════════════════════════
class TestDocumentStore:
    def test_update_returns_mutator_result(self, store):
        assert store.update("users", lambda items: items.append({"id": "1"}) or "done") == "done"
        assert store.read_collection("users") == [{"id": "1"}]

    def test_failed_mutator_writes_nothing(self, store):
        store.update("emergencies", lambda items: items.append({"id": "keep"}))

        def _boom(items):
            items.append({"id": "lost"})
            raise RuntimeError("abort")

        with pytest.raises(RuntimeError):
            store.update("emergencies", _boom)
        assert store.read_collection("emergencies") == [{"id": "keep"}]

    def test_unknown_collection(self, store):
        with pytest.raises(KeyError):
            store.read_collection("secrets")

    def test_read_returns_typed_document(self, store):
        doc = store.read()
        assert doc.emergencies == [] and doc.agencies == []

    def test_concurrent_accepts_lose_nothing(self, store, registry):
        e = registry.create_emergency("Fire", "Building fire", "u1")
        names = [f"volunteer-{i}" for i in range(20)]
        errors = []

        def _worker(name):
            try:
                registry.accept_emergency(e.id, name)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=_worker, args=(n,)) for n in names]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        accepted = registry.get_emergency(e.id).volunteers
        if isinstance(store, JsonDocumentStore):
            assert errors == []
            assert sorted(accepted) == sorted(names)
        # SQLite may still refuse a writer once retries run out; nothing may be silently lost
        assert len(accepted) + len(errors) == len(names)
        assert len(set(accepted)) == len(accepted)
        assert all(isinstance(err, StorageError) for err in errors)


class TestJsonDocumentStore:
    def test_sibling_keys_preserved_verbatim(self, tmp_path):
        path = tmp_path / "db.json"
        original = {
            "users": [{"id": "u1", "name": "Ann", "email": "a@b.co", "password": "x",
                       "phoneNumber": "555-000-0000"}],
            "admins": [],
            "custom": {"anything": [1, 2, 3]},
        }
        path.write_text(json.dumps(original), encoding="utf-8")
        store = JsonDocumentStore(path)
        EmergencyService(EmergencyRepository(store)).create_emergency("Fire", "d", "u1")

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw["users"] == original["users"]
        assert raw["custom"] == original["custom"]
        assert len(raw["emergencies"]) == 1

    def test_initialize_creates_all_collections(self, tmp_path):
        path = tmp_path / "nested" / "db.json"
        JsonDocumentStore(path).initialize()
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert set(raw) == {"emergencies", "users", "admins", "volunteers", "agencies"}

    def test_missing_file_reads_empty(self, tmp_path):
        assert JsonDocumentStore(tmp_path / "absent.json").read_collection("emergencies") == []

    def test_corrupt_file_raises_storage_error(self, tmp_path):
        path = tmp_path / "db.json"
        path.write_text("[1, 2", encoding="utf-8")
        with pytest.raises(StorageError):
            JsonDocumentStore(path).read()

    def test_non_object_document_raises_storage_error(self, tmp_path):
        path = tmp_path / "db.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(StorageError):
            JsonDocumentStore(path).verify_connection()

    def test_failed_write_keeps_previous_file(self, tmp_path):
        path = tmp_path / "db.json"
        store = JsonDocumentStore(path)
        store.update("users", lambda items: items.append({"id": "1"}))
        before = path.read_text(encoding="utf-8")
        with patch("relief_service.repositories.document_store.os.replace",
                   side_effect=OSError("disk full")):
            with pytest.raises(StorageError):
                store.update("users", lambda items: items.append({"id": "2"}))
        assert path.read_text(encoding="utf-8") == before
        assert [p.name for p in tmp_path.iterdir()] == ["db.json"]


class TestSqlDocumentStore:
    def test_version_conflict_retries(self, tmp_path):
        store = SqlDocumentStore(build_engine(f"sqlite:///{tmp_path / 'db.sqlite'}"))
        store.initialize()
        store.update("users", lambda items: items.append({"id": "a"}))
        calls = {"n": 0}

        def _racing(items):
            calls["n"] += 1
            if calls["n"] == 1:
                # a competing writer bumps the version underneath us
                store.update("users", lambda other: other.append({"id": "b"}))
            items.append({"id": "c"})

        store.update("users", _racing)
        assert calls["n"] == 2
        assert [i["id"] for i in store.read_collection("users")] == ["a", "b", "c"]

    def test_gives_up_after_max_retries(self, tmp_path):
        store = SqlDocumentStore(build_engine(f"sqlite:///{tmp_path / 'db.sqlite'}"),
                                 max_retries=2)
        store.initialize()
        store.update("users", lambda items: items.append({"id": "a"}))

        def _always_racing(items):
            store.update("users", lambda other: other.append({"id": "x"}))

        with pytest.raises(StorageError):
            store.update("users", _always_racing)

    def test_locked_database_retries(self, tmp_path):
        store = SqlDocumentStore(build_engine(f"sqlite:///{tmp_path / 'db.sqlite'}"))
        store.initialize()
        calls = {"n": 0}

        def _locked_once(items):
            calls["n"] += 1
            if calls["n"] == 1:
                raise OperationalError("UPDATE", {}, sqlite3.OperationalError("database is locked"))
            items.append({"id": "a"})

        store.update("users", _locked_once)
        assert calls["n"] == 2
        assert store.read_collection("users") == [{"id": "a"}]

    def test_other_operational_errors_are_not_retried(self, tmp_path):
        store = SqlDocumentStore(build_engine(f"sqlite:///{tmp_path / 'db.sqlite'}"))
        store.initialize()
        calls = {"n": 0}

        def _broken(items):
            calls["n"] += 1
            raise OperationalError("UPDATE", {}, sqlite3.OperationalError("disk I/O error"))

        with pytest.raises(StorageError):
            store.update("users", _broken)
        assert calls["n"] == 1

    def test_unreachable_database(self):
        store = SqlDocumentStore(build_engine("sqlite:////nonexistent-dir/db.sqlite"))
        with pytest.raises(StorageError):
            store.verify_connection()


# ═══════════════════════════════════════════════════════════════════════════
# ACCOUNTS
# ═══════════════════════════════════════════════════════════════════════════
def _register(accounts, role="user", email="ann@example.org"):
    return accounts.register(
        role=role, name="Ann", phone_number="555-111-2222", address="1 Main St",
        email=email, password="passw0rd!", country="India", city="Delhi",
        pin_code="110001",
    )


class TestAccountService:
    def test_register_and_login(self, accounts):
        created = _register(accounts)
        assert "password" not in created
        result = accounts.login("ANN@example.org", "passw0rd!", "user")
        claims = decode_token(result["token"])
        assert claims["id"] == created["id"]
        assert claims["role"] == "user"

    def test_duplicate_email(self, accounts):
        _register(accounts)
        with pytest.raises(DuplicateAccountError):
            _register(accounts, email="Ann@Example.org")

    def test_register_rejects_admin_role(self, accounts):
        with pytest.raises(ValidationError):
            _register(accounts, role="admin")

    def test_login_rejects_bad_password(self, accounts):
        _register(accounts)
        with pytest.raises(AuthenticationError):
            accounts.login("ann@example.org", "nope", "user")

    def test_login_rejects_unknown_role(self, accounts):
        with pytest.raises(ValidationError):
            accounts.login("ann@example.org", "passw0rd!", "root")

    def test_seed_admin_is_idempotent(self, accounts):
        first = accounts.seed_admin("Root", "root@example.org", "adm1n!pass")
        second = accounts.seed_admin("Root", "root@example.org", "adm1n!pass")
        assert first.id == second.id
        assert len(accounts.list_accounts()["admins"]) == 1

    def test_seed_admin_skipped_without_credentials(self, accounts):
        assert accounts.seed_admin("Root", "", "") is None

    def test_update_profile_email_conflict(self, accounts):
        _register(accounts)
        other = _register(accounts, email="bob@example.org")
        with pytest.raises(DuplicateAccountError):
            accounts.update_profile("user", other["id"], {"email": "ann@example.org"})

    def test_update_profile_unknown_account(self, accounts):
        with pytest.raises(NotFoundError):
            accounts.update_profile("user", "ghost", {"city": "Goa"})

    def test_update_profile_rejects_blank(self, accounts):
        created = _register(accounts)
        with pytest.raises(ValidationError):
            accounts.update_profile("user", created["id"], {"city": " "})

    def test_update_profile_normalises_legacy_keys(self, store, accounts):
        store.update("users", lambda items: items.append({
            "id": "legacy-1", "name": "Ann", "email": "ann@example.org", "password": "x",
            "phoneNumber": "111-111-1111", "pinCode": "12345",
        }))
        updated = accounts.update_profile("user", "legacy-1", {"phoneNumber": "333-333-3333"})
        assert updated["phone_number"] == "333-333-3333"
        assert updated["pin_code"] == "12345"
        stored = store.read_collection("users")[0]
        assert "phoneNumber" not in stored and "pinCode" not in stored
        assert stored["pin_code"] == "12345"

    def test_list_accounts_strips_passwords(self, accounts):
        _register(accounts)
        listing = accounts.list_accounts()
        assert len(listing["users"]) == 1
        assert "password" not in listing["users"][0]


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("passw0rd!")
        assert verify_password("passw0rd!", hashed)
        assert not verify_password("other", hashed)

    def test_non_bcrypt_value_never_matches(self):
        assert not verify_password("plain", "plain")


# ═══════════════════════════════════════════════════════════════════════════
# UPSTREAM CLIENTS
# ═══════════════════════════════════════════════════════════════════════════
def _patched_httpx(module: str, response=None, exc=None):
    """Patch httpx.Client inside ``module``; return (patcher, inner client mock)."""
    inner = MagicMock()
    if exc is not None:
        inner.post.side_effect = exc
    else:
        inner.post.return_value = response
    factory = MagicMock()
    factory.return_value.__enter__.return_value = inner
    factory.return_value.__exit__.return_value = False
    return patch(f"{module}.httpx.Client", factory), inner


def _response(status: int, body, url="http://upstream/predict"):
    return httpx.Response(status, json=body, request=httpx.Request("POST", url))


class TestPredictionClient:
    MODULE = "relief_service.services.prediction_client"

    def test_flood_passthrough(self):
        patcher, inner = _patched_httpx(self.MODULE, _response(200, {"prediction": 0.7}))
        with patcher:
            result = PredictionClient("http://upstream").predict({"rainfall": 100})
        assert result == {"prediction": 0.7, "prediction_type": "flood"}
        inner.post.assert_called_once_with("http://upstream/predict", json={"rainfall": 100})

    def test_drought_inverts_score(self):
        patcher, _ = _patched_httpx(self.MODULE, _response(200, {"prediction": 0.25}))
        with patcher:
            result = PredictionClient("http://upstream").predict({}, "drought")
        assert result["prediction"] == 0.75

    def test_drought_inverts_boolean(self):
        patcher, _ = _patched_httpx(self.MODULE, _response(200, {"prediction": True}))
        with patcher:
            result = PredictionClient("http://upstream").predict({}, "drought")
        assert result["prediction"] is False

    def test_http_error_status(self):
        patcher, _ = _patched_httpx(self.MODULE, _response(500, {"error": "boom"}))
        with patcher, pytest.raises(UpstreamError):
            PredictionClient("http://upstream").predict({})

    def test_unreachable(self):
        patcher, _ = _patched_httpx(self.MODULE, exc=httpx.ConnectError("refused"))
        with patcher, pytest.raises(UpstreamError):
            PredictionClient("http://upstream").predict({})


class TestChatClient:
    MODULE = "relief_service.services.chat_client"

    def test_reply(self):
        body = {"choices": [{"message": {"content": "You are not alone."}}]}
        patcher, inner = _patched_httpx(self.MODULE, _response(200, body, "http://chat"))
        with patcher:
            reply = ChatClient("http://chat", api_key="k", model="m").reply("help")
        assert reply == "You are not alone."
        sent = inner.post.call_args.kwargs
        assert sent["headers"] == {"Authorization": "Bearer k"}
        assert sent["json"]["model"] == "m"
        assert sent["json"]["messages"][-1] == {"role": "user", "content": "help"}

    def test_not_configured(self):
        with pytest.raises(ChatNotConfiguredError):
            ChatClient("http://chat", api_key="").reply("help")

    def test_malformed_reply(self):
        patcher, _ = _patched_httpx(self.MODULE, _response(200, {"choices": []}, "http://chat"))
        with patcher, pytest.raises(UpstreamError):
            ChatClient("http://chat", api_key="k").reply("help")

    def test_upstream_rejects(self):
        patcher, _ = _patched_httpx(self.MODULE, _response(401, {"error": "bad key"}, "http://chat"))
        with patcher, pytest.raises(UpstreamError):
            ChatClient("http://chat", api_key="k").reply("help")
