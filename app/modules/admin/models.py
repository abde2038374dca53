# Supabase tables: admin_logs (plus profiles, see app.modules.profiles.models)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

admin_logs:
- id: uuid (primary key)
- admin_id: uuid (not null, references auth.users.id)
- action: text (not null) - e.g. "create_user", "suspend_user", "delete_user"
- target_user_id: uuid (nullable)
- details: jsonb (nullable) - free-form action details
- ip_address: text (nullable)
- user_agent: text (nullable)
- created_at: timestamp (default: now())

The table is append-only. Rows are written best-effort after privileged
mutations; a failed insert never fails the mutation itself.

RPC functions:
- is_admin() -> boolean - true when auth.uid() has an active admin profile
- get_user_statistics() -> setof (date, new_users, active_users, suspended_users, banned_users)
"""
