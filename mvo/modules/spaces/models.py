# Supabase tables: teams, team_memberships, enterprise_spaces, space_memberships
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

teams:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- avatar_media_id: uuid (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

team_memberships:
- id: uuid (primary key)
- team_id: uuid (foreign key to teams.id) - team_memberships_team_id_fkey
- user_id: uuid (foreign key to users.id) - team_memberships_user_id_fkey
- role: text - values: admin, moderator, member, validator
- status: text - values: active, invited, blocked
- created_at: timestamp (default: now())

enterprise_spaces:
- id: uuid (primary key)
- team_id: uuid (foreign key to teams.id) - enterprise_spaces_team_id_fkey
- name: text (not null)
- visibility: text - values: public, private
- settings: jsonb (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

space_memberships:
- id: uuid (primary key)
- space_id: uuid (foreign key to enterprise_spaces.id) - space_memberships_space_id_fkey
- user_id: uuid (foreign key to users.id) - space_memberships_user_id_fkey
- role: text - values: admin, moderator, member, validator
- status: text - values: active, invited, blocked
- created_at: timestamp (default: now())
- unique(space_id, user_id)

Team members count as members of every space owned by their team.
"""
