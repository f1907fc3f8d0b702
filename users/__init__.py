"""users/ -- User record domain: models, error taxonomy, and the SQLAlchemy store.

Layer rule: users/ imports only stdlib + third-party libraries.
auth/ and api/ import from users/, not the other way around.
"""
