"""Authentication and authorization.

Learn: Users log in with email/password and get a session cookie. The
cookie is a signed JWT whose only job is to name a server-side
UserSession row, so logging out (deleting the row) revokes it at once.

Roles (organizer, director, operator, viewer) gate a few routes; most
of the viewer-facing surface (join by code, chat, /ws) is open.
"""
