"""
Seed Catalog Script
Populates the products table with the starter catalog and optionally promotes
users to the admin role. Role changes are never exposed through the API, so
this (or the Supabase dashboard) is the way to create an admin.

Usage:
    python -m prosupps.scripts.seed_catalog [--promote admin@example.com ...]
"""

import argparse
import logging

from supabase import Client

from prosupps.database.supabase_client import SupabaseClient
from prosupps.modules.profile.models import ROLE_ADMIN

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

STARTER_PRODUCTS = [
    {
        "name": "Gold Standard Whey",
        "description": "24g of whey protein isolate per serving.",
        "price": 59.99,
        "category": "protein",
        "weight": 2270,
        "flavor": "Double Rich Chocolate",
        "stock": 25,
        "specifications": {"servings": "74", "protein per serving": "24g"},
    },
    {
        "name": "Creatine Monohydrate",
        "description": "Micronized creatine for strength and power.",
        "price": 24.99,
        "category": "supplements",
        "weight": 300,
        "flavor": "Unflavored",
        "stock": 40,
        "specifications": {"servings": "60"},
    },
    {
        "name": "Pre-Workout Ignite",
        "description": "Caffeine and beta-alanine blend for training sessions.",
        "price": 34.99,
        "category": "pre-workout",
        "weight": 390,
        "flavor": "Fruit Punch",
        "stock": 15,
        "specifications": {"caffeine": "200mg"},
    },
    {
        "name": "BCAA 2:1:1",
        "description": "Branched-chain amino acids for recovery.",
        "price": 19.99,
        "category": "amino acids",
        "weight": 400,
        "flavor": "Watermelon",
        "stock": 30,
        "specifications": {"servings": "40"},
    },
]


def seed_products(supabase: Client) -> int:
    """Insert starter products that are not in the table yet (matched by name)"""
    logger.info("Seeding products...")
    created_count = 0
    skipped_count = 0

    for product in STARTER_PRODUCTS:
        try:
            existing = supabase.table("products")\
                .select("id")\
                .eq("name", product["name"])\
                .execute()

            if existing.data:
                skipped_count += 1
                logger.debug(f"Product exists: {product['name']}")
                continue

            supabase.table("products").insert({
                **product,
                "image_url": None,
                "images": [],
            }).execute()
            created_count += 1
            logger.debug(f"Created product: {product['name']}")
        except Exception as e:
            logger.error(f"Error processing product {product['name']}: {e}")

    logger.info(f"Products seeded: {created_count} created, {skipped_count} already present")
    return created_count


def promote_admins(supabase: Client, emails) -> int:
    """Set role=admin on the profile rows of the given emails"""
    promoted = 0
    for email in emails:
        result = supabase.table("users")\
            .update({"role": ROLE_ADMIN})\
            .eq("email", email)\
            .execute()
        if result.data:
            promoted += 1
            logger.info(f"Promoted {email} to admin")
        else:
            logger.warning(f"No profile row for {email}; the user must log in once first")
    return promoted


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the product catalog")
    parser.add_argument("--promote", nargs="*", default=[], metavar="EMAIL",
                        help="emails to promote to the admin role")
    parser.add_argument("--skip-products", action="store_true")
    args = parser.parse_args(argv)

    supabase = SupabaseClient.get_service_client()
    if not args.skip_products:
        seed_products(supabase)
    if args.promote:
        promote_admins(supabase, args.promote)
    logger.info("Seeding completed")


if __name__ == "__main__":
    main()
