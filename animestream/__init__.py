"""Resolve anime episode requests into direct stream URLs through torrent indexers and debrid services."""

__version__ = '0.1.0'
