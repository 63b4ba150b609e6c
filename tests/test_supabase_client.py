from prosupps.database import supabase_client
from prosupps.database.supabase_client import SupabaseClient


def test_each_request_gets_its_own_client_scoped_to_the_caller(monkeypatch):
    created = []

    def fake_create_client(url, key, options=None):
        client = object()
        created.append((client, options))
        return client

    SupabaseClient.reset_client()
    monkeypatch.setattr(supabase_client, "create_client", fake_create_client)

    first = SupabaseClient.for_request("jwt-a")
    second = SupabaseClient.for_request("jwt-b")
    anonymous = SupabaseClient.for_request(None)

    assert len({id(first), id(second), id(anonymous)}) == 3
    options = [opts for _, opts in created]
    assert options[0].headers["Authorization"] == "Bearer jwt-a"
    assert options[1].headers["Authorization"] == "Bearer jwt-b"
    assert "Authorization" not in options[2].headers
    assert all(not o.persist_session and not o.auto_refresh_token for o in options)
    assert SupabaseClient._client is None


def test_installed_client_is_used_for_requests(fake_supabase):
    assert SupabaseClient.for_request("anything") is fake_supabase
