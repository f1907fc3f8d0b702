"""
auth/ -- Authentication and authorization package for the Acquisitions API.

Layer rule: auth/ imports from users/ and core/ only.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
