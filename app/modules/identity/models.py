# Supabase tables: users, auth.users and the tables that reference a user
# This file documents the expected database schema
# Actual reads are handled via Supabase SDK in resolver.py and stats.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, generated when the profile is created)
- auth_id: uuid (unique, nullable) - auth.users.id of the same person
- email: text
- role: text (user | admin)
- points: integer (cached, nullable)
- level: integer (cached, nullable)
- city: text (nullable)
- state: text (nullable)
- created_at: timestamp (default: now())

checkins, geographic_checkins, ai_conversations, ai_messages, user_goals:
- id: uuid (primary key)
- user_id: uuid - holds users.id for newer rows and auth.users.id for rows
  written before profiles were mirrored; readers must match both
- created_at: timestamp
- checkins.event_id -> events(title, location)
- geographic_checkins.manifestation_id -> manifestations(name, city, state)
- geographic_checkins.checked_in_at: timestamp (older rows lack created_at)

Note: a users row is normally mirrored from auth.users by a trigger. Auth
records with no users row exist and are treated as unauthenticated.
"""
