# Supabase Auth
# Sign-up, login and OAuth callbacks happen in the browser against Supabase Auth.
# This service only verifies the bearer JWT the browser forwards.

"""
Supabase Auth provides:
- auth.users - identities (id, email, user_metadata, app_metadata)
- auth.get_user(jwt) - resolve a JWT to its user

Public profile data used for author names lives in:

users:
- id: uuid (primary key, same as auth.users.id)
- username: text (nullable)
- full_name: text (nullable)
- email: text (nullable)
- profile_image_url: text (nullable)

public_user_profiles: read-only view over users (username, full_name, profile_image_url)

app_metadata.type == "super_user" grants moderation rights over any idea or comment.
"""
