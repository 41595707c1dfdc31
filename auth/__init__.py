"""
auth — caller authentication.

Provides:
  • HMAC-signed bearer tokens carrying user id + security level
  • ``verify_token`` used by the HTTP adapter to build a RequestContext
"""
