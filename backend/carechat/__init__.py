"""CareChat - streaming chat session engine for the AI consultation client."""

__version__ = "0.1.0"
