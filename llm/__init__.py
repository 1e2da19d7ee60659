"""
LLM integration for category suggestion.

This package contains:
- classify: Category suggestion with random fallback
- client: OpenAI-compatible REST client
- prompts: System and user prompt builders
"""
