# Supabase Auth
# Recipients are Supabase Auth users; no custom tables are required.
# notifications.user_id and notification_preferences.user_id reference auth.users.id

"""
Supabase Auth provides:
- auth.get_user() - Get current user from JWT token

Producers of notifications (quote, RFQ and messaging flows) are flagged with
app_metadata.type = "super_user", which is set server-side and cannot be
modified by users.
"""
