"""
Lesson content: models, catalog, prompts and providers.

Components:
    - models.py: Pydantic lesson models (camelCase JSON)
    - catalog.py: Topics per category
    - prompts.py: Prompts and structured-output schemas
    - provider.py: OpenAI and fallback content providers
    - samples.py: Canned payloads for the fallback provider
"""
