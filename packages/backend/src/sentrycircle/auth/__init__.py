"""Authentication and authorization.

Learn: two pieces, both free of transport concerns:
1. TokenService (jwt.py) → issue / verify / refresh HS256 bearer tokens,
   with the signing done by a pluggable TokenCodec (codec.py)
2. AccessControl (access.py) → guardian/ownership rules over the
   Device → Child → Family chain

Routes use them through the FastAPI dependencies in dependencies.py.
"""
