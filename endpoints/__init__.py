"""
endpoints — declared, validated request handlers.

Provides:
  • Endpoint / EndpointRequest / EndpointResponse and ``dispatch``
  • Typed parameters (integer, string, connector slug)
  • EndpointRegistry for hosts
  • OAuth connect endpoints
"""
