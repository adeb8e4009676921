"""Indexer adapters and torrent acquisition."""
