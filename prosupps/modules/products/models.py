# Supabase table: products
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- price: numeric (not null) - must be > 0, checked by the admin form only
- category: text (nullable) - one of CATEGORIES in the admin form, free-form on read
- weight: integer (nullable) - grams
- flavor: text (nullable)
- stock: integer (not null, default: 0)
- image_url: text (nullable) - primary image, public URL in product-images
- images: text[] (nullable) - images[0] is the display image when present
- specifications: jsonb (nullable) - free-form key/value map
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
"""

CATEGORIES = ["protein", "supplements", "pre-workout", "amino acids", "vitamins", "other"]
UNCATEGORIZED = "uncategorized"

SORT_PRICE_ASC = "price-asc"
SORT_PRICE_DESC = "price-desc"
