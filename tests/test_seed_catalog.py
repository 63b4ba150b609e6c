from prosupps.scripts.seed_catalog import STARTER_PRODUCTS, main, promote_admins, seed_products


def test_seed_skips_existing_products(fake_supabase):
    assert seed_products(fake_supabase) == len(STARTER_PRODUCTS)
    assert seed_products(fake_supabase) == 0
    rows = fake_supabase.tables["products"]
    assert len(rows) == len(STARTER_PRODUCTS)
    assert all(r["images"] == [] and r["image_url"] is None for r in rows)


def test_promote_admins(fake_supabase):
    fake_supabase.tables["users"] = [{"id": "u1", "email": "boss@example.com", "role": "user"}]
    assert promote_admins(fake_supabase, ["boss@example.com", "nobody@example.com"]) == 1
    assert fake_supabase.tables["users"][0]["role"] == "admin"


def test_main_uses_service_client(fake_supabase):
    fake_supabase.tables["users"] = [{"id": "u1", "email": "boss@example.com", "role": "user"}]
    main(["--skip-products", "--promote", "boss@example.com"])
    assert "products" not in fake_supabase.tables
    assert fake_supabase.tables["users"][0]["role"] == "admin"
