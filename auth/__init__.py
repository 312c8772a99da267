"""auth/ -- Credentials, session tokens and identity propagation for Postboard.

Layer rule: auth/ imports stdlib, third-party libraries and core/.
It does NOT import from api/ or posts/.
api/ imports from auth/, not the other way around.
"""
