"""Adapters layer - I/O boundaries (cache, Riot API, Notion, alert webhook)."""
