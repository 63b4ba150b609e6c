import httpx
import pytest

PRODUCTS = "/api/v1/admin/products"
DRAFT = "/api/v1/admin/drafts/add-product"
VISIBILITY = "/api/v1/admin/session/visibility"


@pytest.fixture
def admin(login):
    return login("admin@example.com", role="admin")


def _form(**fields):
    data = {"name": "Iso Whey", "price": "54.90", "category": "protein", "stock": "12"}
    data.update(fields)
    return data


def test_anonymous_is_sent_to_login(client):
    response = client.get(PRODUCTS)
    assert response.status_code == 401
    assert response.headers["X-Redirect"] == "/login"


def test_customer_is_sent_home(client, login):
    headers = login("ana@example.com")
    response = client.get(PRODUCTS, headers=headers)
    assert response.status_code == 403
    assert response.headers["X-Redirect"] == "/"


def test_list_is_newest_first(client, admin, make_product):
    make_product(name="Old")
    make_product(name="New")
    response = client.get(PRODUCTS, headers=admin)
    assert [p["name"] for p in response.json()] == ["New", "Old"]


@pytest.mark.parametrize("fields, field", [
    ({"price": "0"}, "price"),
    ({"price": "-3"}, "price"),
    ({"price": "abc"}, "price"),
    ({"name": "   "}, "name"),
    ({"specifications": "[1, 2]"}, "specifications"),
    ({"stock": "1.5"}, "stock"),
])
def test_invalid_form_makes_no_writes(client, fake_supabase, admin, fields, field):
    response = client.post(PRODUCTS, data=_form(**fields), headers=admin)
    assert response.status_code == 422
    assert response.json()["field"] == field
    assert fake_supabase.writes() == []


def test_add_product_with_image(client, fake_supabase, admin):
    client.put(DRAFT, json={"name": "Iso Whey"}, headers=admin)

    response = client.post(
        PRODUCTS,
        data=_form(specifications='{"servings": "30"}'),
        files={"image": ("tub.png", b"png-bytes", "image/png")},
        headers=admin,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Product added successfully!"
    assert body["refresh_error"] is None
    upload = fake_supabase.uploads[0]
    assert upload["bucket"] == "product-images"
    assert upload["path"].startswith("products/")
    assert body["product"]["images"] == [body["product"]["image_url"]]
    assert body["product"]["specifications"] == {"servings": "30"}
    assert [p["name"] for p in body["products"]] == ["Iso Whey"]
    assert fake_supabase.writes() == [("upload", "product-images"), ("insert", "products")]
    assert fake_supabase.calls[-1] == ("select", "products")

    draft = client.get(DRAFT, headers=admin).json()
    assert draft["draft"] is None


def test_add_product_rejects_non_image(client, fake_supabase, admin):
    response = client.post(
        PRODUCTS, data=_form(), files={"image": ("notes.txt", b"hello", "text/plain")}, headers=admin
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "Please select a valid image file"
    assert fake_supabase.writes() == []


def test_transient_insert_failure_is_retried(client, fake_supabase, admin):
    fake_supabase.fail("products", "insert", httpx.ConnectError("reset"), httpx.ConnectError("reset"))
    response = client.post(PRODUCTS, data=_form(), headers=admin)
    assert response.status_code == 201
    assert fake_supabase.calls.count(("insert", "products")) == 3


def test_persistent_failure_is_reported(client, fake_supabase, admin):
    fake_supabase.fail("products", "insert", *[httpx.ConnectError("reset")] * 3)
    response = client.post(PRODUCTS, data=_form(), headers=admin)
    assert response.status_code == 503
    assert response.json()["retryable"] is True
    assert "products" not in fake_supabase.tables or fake_supabase.tables["products"] == []


def test_refresh_failure_after_write_keeps_last_list(client, fake_supabase, admin, make_product):
    make_product(name="Existing")
    client.get(PRODUCTS, headers=admin)
    fake_supabase.fail("products", "select", httpx.ConnectError("down"))

    response = client.post(PRODUCTS, data=_form(), headers=admin)

    assert response.status_code == 201
    body = response.json()
    assert body["refresh_error"] == "Failed to load products. Please try again later."
    assert [p["name"] for p in body["products"]] == ["Existing"]


def test_update_product_keeps_images_without_new_file(client, fake_supabase, admin, make_product):
    row = make_product(name="Whey", images=["https://cdn/a.jpg"], image_url="https://cdn/a.jpg")
    response = client.put(f"{PRODUCTS}/{row['id']}", data=_form(name="Whey 2kg", price="64"), headers=admin)
    assert response.status_code == 200
    product = response.json()["product"]
    assert product["name"] == "Whey 2kg"
    assert product["price"] == 64.0
    assert product["images"] == ["https://cdn/a.jpg"]
    assert fake_supabase.uploads == []


def test_update_missing_product(client, admin):
    response = client.put(f"{PRODUCTS}/missing", data=_form(), headers=admin)
    assert response.status_code == 404


def test_delete_product(client, fake_supabase, admin, make_product):
    row = make_product(name="Whey")
    response = client.delete(f"{PRODUCTS}/{row['id']}", headers=admin)
    assert response.status_code == 200
    assert response.json()["message"] == "Product deleted successfully!"
    assert response.json()["products"] == []


def test_hidden_tab_refuses_writes(client, fake_supabase, admin, make_product):
    row = make_product(name="Whey")
    hidden = client.post(VISIBILITY, json={"visible": False}, headers=admin)
    assert hidden.json()["tab_active"] is False

    response = client.delete(f"{PRODUCTS}/{row['id']}", headers=admin)

    assert response.status_code == 409
    assert response.json()["warning"] is True
    assert ("delete", "products") not in fake_supabase.calls
    assert len(fake_supabase.tables["products"]) == 1


def test_reactivation_schedules_refresh(client, admin):
    client.post(VISIBILITY, json={"visible": False}, headers=admin)
    response = client.post(VISIBILITY, json={"visible": True}, headers=admin)
    assert response.json() == {
        "tab_id": "default",
        "tab_active": True,
        "operation_in_progress": False,
        "refresh_scheduled": True,
    }


def test_draft_round_trip(client, admin):
    assert client.get(DRAFT, headers=admin).json()["draft"] is None
    saved = client.put(DRAFT, json={"name": "Half typed", "price": "4"}, headers=admin)
    assert saved.status_code == 200
    loaded = client.get(DRAFT, headers=admin).json()
    assert loaded["draft"] == {"name": "Half typed", "price": "4"}
    assert loaded["saved_at"] == saved.json()["saved_at"]
    assert client.delete(DRAFT, headers=admin).status_code == 204
    assert client.get(DRAFT, headers=admin).json()["draft"] is None


def test_logout_drops_session_state(client, admin):
    client.put(DRAFT, json={"name": "Half typed"}, headers=admin)
    client.post("/api/v1/auth/logout", headers=admin)
    from prosupps.core.context import session_registry
    assert session_registry.get(admin["Authorization"].split()[1]) is None


def test_background_tab_does_not_block_foreground_tab(client, fake_supabase, admin, make_product):
    row = make_product(name="Whey")
    background = {**admin, "X-Tab-Id": "tab-a"}
    foreground = {**admin, "X-Tab-Id": "tab-b"}
    hidden = client.post(VISIBILITY, json={"visible": False}, headers=background)
    assert hidden.json()["tab_id"] == "tab-a"

    refused = client.delete(f"{PRODUCTS}/{row['id']}", headers=background)
    allowed = client.delete(f"{PRODUCTS}/{row['id']}", headers=foreground)

    assert refused.status_code == 409
    assert allowed.status_code == 200
    assert fake_supabase.calls.count(("delete", "products")) == 1


def test_update_missing_product_uploads_nothing(client, fake_supabase, admin):
    response = client.put(
        f"{PRODUCTS}/missing",
        data=_form(),
        files={"image": ("tub.png", b"png-bytes", "image/png")},
        headers=admin,
    )
    assert response.status_code == 404
    assert fake_supabase.uploads == []


def test_category_choices(client, admin):
    body = client.get("/api/v1/admin/categories", headers=admin).json()
    assert body["default"] == "protein"
    assert "pre-workout" in body["categories"]
