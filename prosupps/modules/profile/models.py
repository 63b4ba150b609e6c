# Supabase table: users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, references auth.users.id)
- email: text (not null) - synced from auth.users on first login
- full_name: text (nullable)
- avatar_url: text (nullable) - public URL in the user-avatars bucket
- role: text (not null, 'user' | 'admin', default: 'user')
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

The row is created by the app on the first successful login. `role` is only
ever changed outside the app (Supabase dashboard or scripts/seed_catalog.py).
"""

ROLE_USER = "user"
ROLE_ADMIN = "admin"
