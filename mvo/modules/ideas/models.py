# Supabase tables: ideas, tags, idea_tags, idea_versions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

ideas:
- id: uuid (primary key)
- creator_id: uuid (foreign key to users.id, not null) - ideas_creator_id_fkey
- title: text (not null)
- content: jsonb - {blocks: [...], hero_image, hero_video, description}
  (legacy rows store the blocks array directly)
- status_flag: text (default: 'new') - values: new, active, validated, ...
- anonymous: boolean (default: false)
- space_id: uuid (nullable, foreign key to enterprise_spaces.id)
- active_version_id: uuid (nullable, foreign key to idea_versions.id)
- created_at: timestamp (default: now())

tags:
- id: uuid (primary key)
- name: text (unique, not null)

idea_tags:
- idea_id: uuid (foreign key to ideas.id, on delete cascade)
- tag_id: uuid (foreign key to tags.id)

idea_versions:
- id: uuid (primary key)
- idea_id: uuid (foreign key to ideas.id, on delete cascade)
- version_number: integer (not null, unique per idea)
- title: text
- content: jsonb
- is_active: boolean
- created_at: timestamp (default: now())

RPC functions:
- rpc_get_filtered_ideas(search_query, filter_conditions, sort_field, sort_direction, limit_int, offset_int)
  returns [{total_count: int, ideas: jsonb}]
- create_idea_version(p_idea_id, p_title, p_content) returns the new idea_versions row
- set_active_version(p_idea_id, p_version_id) returns the activated idea_versions row
"""
