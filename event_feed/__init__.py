"""
Event Feed Ingestion

Harvests event cards from a listing page, converts them to structured
records with an LLM (falling back to pattern extraction), and writes a
deduplicated JSON feed.
"""

__version__ = "0.1.0"
