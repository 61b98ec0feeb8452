"""Client for conversational drafting, review and finalization of court petitions."""

__version__ = "0.1.0"
