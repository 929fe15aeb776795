"""Unit tests for individual components in isolation.

Coverage:
    - retrieval/: Configuration, request building and result normalization
    - ui/: Chat view state and the HTTP client

Uses mocks for the agent runtime client and httpx.MockTransport for HTTP.
"""
