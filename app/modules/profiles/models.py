# Supabase tables: profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key)
- user_id: uuid (unique, not null, references auth.users.id on delete cascade)
- email: text (not null) - synced from auth.users
- full_name: text (nullable)
- avatar_url: text (nullable)
- bio, website, location, phone: text (nullable)
- date_of_birth: date (nullable)
- preferred_language: text (default: 'en') - 'en' | 'th'
- role: text (default: 'user') - 'user' | 'moderator' | 'admin'
- status: text (default: 'active') - 'active' | 'suspended' | 'banned' | 'pending'
- login_count: integer (default: 0)
- last_login_at: timestamp (nullable)
- suspended_until: timestamp (nullable)
- suspension_reason: text (nullable)
- created_by, updated_by: uuid (nullable, references auth.users.id)
- created_at: timestamp (default: now())
- updated_at: timestamp (maintained by trigger)

Storage bucket "avatars" holds profile pictures under avatars/<user_id>-<random>.<ext>.

RPC functions:
- update_login_stats(target_user_id uuid) - increments login_count, sets last_login_at

Note: exactly one profile exists per auth user. The API creates it lazily
on the first authenticated request when the signup trigger did not.
"""
