"""
Functions module for scraper package.
Pure helpers for title classification, show matching and episode filtering.
"""

from .title_classifier import *
from .show_matcher import *
from .anime_utils import *
from .release_metadata import *
from .episode_validator import *
