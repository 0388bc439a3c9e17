"""
API Routes Package
==================
Route handlers live in api.py; this package holds what they share.

Modules:
  helpers  - service wiring, response envelopes, date parsing
"""
