"""API-specific request/response models.

Modules:
- common: Error body, validation error formatting, success responses
"""

__all__: list[str] = []
