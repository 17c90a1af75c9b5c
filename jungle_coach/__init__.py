"""Jungle Coach: Riot match ingestion, jungle analytics and Notion sync."""

__version__ = "0.1.0"
