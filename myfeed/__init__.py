"""
myFeed Backend

Feed ingestion and full-text resolution pipeline for the myFeed reader.
Fetches RSS/Atom feeds and newsletters through unreliable CORS proxies,
de-duplicates articles per user, and resolves readable full text on demand.
"""

__version__ = "1.0.0"
