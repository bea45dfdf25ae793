"""
LLM integration for transaction categorization.

This package contains:
- classify: Category selection for a single transaction
- client: OpenAI chat completions client wrapper
- prompts: Prompt builder
"""
