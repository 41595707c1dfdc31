"""
connectors — OAuth2 integrations with external providers.

Provides a generic connector framework that handles:
  • OAuth2 authorization-URL generation with transient state correlation
  • Callback handling (state lookup, code → credential exchange)
  • Credential storage through the environment's ModelHelper
  • Fernet encryption of tokens at rest

Each provider (GitHub, …) is a subclass of Connector.
"""
