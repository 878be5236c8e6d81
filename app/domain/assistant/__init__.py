"""
Assistant bounded context: domain layer.

This module contains all domain logic for the assistant context:
- Symbol resolution from free text
- Provider fallback for market quotes
- Voice intent classification
- Response formatting
- Conversation session model
"""
