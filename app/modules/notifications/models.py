# Supabase tables: notifications, notification_preferences
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

notifications:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (foreign key to auth.users.id, not null) - recipient
- type: text (not null) - one of NotificationType
- title: text (not null)
- message: text (not null)
- priority: text (not null, default: 'medium') - low, medium, high, urgent
- is_read: boolean (not null, default: false)
- data: jsonb (not null, default: '{}') - rfq_id, quote_id, message_id, ...
- email_sent: boolean (not null, default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
- index on (user_id, created_at desc)
- index on (user_id) where is_read = false

Only is_read and email_sent change after insert.
Realtime publication must include this table for the supabase realtime backend.

notification_preferences:
- user_id: uuid (primary key, foreign key to auth.users.id)
- email_notifications: boolean (default: true)
- in_app_notifications: boolean (default: true)
- notification_types: jsonb (default: '{}') - {type: {email: bool, in_app: bool}}
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
