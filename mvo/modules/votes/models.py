# Supabase table: idea_votes
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

idea_votes:
- id: uuid (primary key)
- idea_id: uuid (foreign key to ideas.id, on delete cascade)
- voter_id: uuid (foreign key to users.id, not null)
- vote_type: text (not null) - values: use, dislike, pay
- created_at: timestamp (default: now())
- unique constraint on (idea_id, voter_id, vote_type)

RPC functions (both resolve the voter with auth.uid(), so they must be called
with the caller's JWT attached to the PostgREST client):
- toggle_idea_vote(p_idea_id, p_vote_type) returns the updated ideas row with
  flat use_votes / dislike_votes / pay_votes, score, comment_count and content
- get_user_votes_for_ideas(p_idea_ids) returns
  {idea_id: {use: bool, dislike: bool, pay: bool}}
"""
