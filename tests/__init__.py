"""Test package for Caseforge.

Structure:
    - unit/: Configuration, service, chat view and UI client in isolation
    - integration/: HTTP endpoints through the real FastAPI app

The Bedrock client is always replaced by a mock or fake service, except
for the live test which only runs when a knowledge base is configured.
Leverages pytest with pytest-check for soft assertions.
"""
