# Supabase tables: comments, comment_votes
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

comments:
- id: uuid (primary key)
- idea_id: uuid (foreign key to ideas.id, on delete cascade)
- user_id: uuid (foreign key to users.id) - comments_user_id_fkey
  (joined through the public_user_profiles view)
- parent_comment_id: uuid (nullable, foreign key to comments.id)
- content: text (not null)
- created_at: timestamp (default: now())
- deleted_at: timestamp (nullable) - soft delete marker

comment_votes:
- comment_id: uuid (foreign key to comments.id, on delete cascade)
- user_id: uuid (foreign key to users.id)
- reaction_type: text - values: upvote, downvote
- unique(comment_id, user_id)
"""
