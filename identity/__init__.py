"""
identity — Clerk user events delivered as Svix-signed webhooks.
"""
