# settings_schema.py

DEFAULT_EXCLUDED_EPISODE_NUMBERS = [360, 480, 720, 1080, 1920, 2160, 4320]

SETTINGS_SCHEMA = {
    "Scraping": {
        "tab": "Scrapers",
        "nyaa_enabled": {
            "type": "boolean",
            "description": "Search Nyaa for releases",
            "default": True
        },
        "nyaa_url": {
            "type": "string",
            "description": "Base URL of the Nyaa instance",
            "default": "https://nyaa.si"
        },
        "nyaa_category": {
            "type": "string",
            "description": "Nyaa category filter (1_2 is English-translated anime)",
            "default": "1_2"
        },
        "animetosho_enabled": {
            "type": "boolean",
            "description": "Search AnimeTosho for releases",
            "default": True
        },
        "animetosho_url": {
            "type": "string",
            "description": "Base URL of the AnimeTosho feed API",
            "default": "https://feed.animetosho.org"
        },
        "torrentio_enabled": {
            "type": "boolean",
            "description": "Look releases up by external id through Torrentio",
            "default": True
        },
        "torrentio_url": {
            "type": "string",
            "description": "Base URL of the Torrentio addon",
            "default": "https://torrentio.strem.fun"
        },
        "torrentio_opts": {
            "type": "string",
            "description": "Option path segment passed to Torrentio",
            "default": "providers=nyaasi,tokyotosho,anidex|sort=seeders"
        },
        "scraper_timeout": {
            "type": "integer",
            "description": "Timeout in seconds for a single indexer request",
            "default": 10
        },
        "identity_threshold": {
            "type": "integer",
            "description": "Minimum show identity score for text-search results",
            "default": 60
        },
        "identity_threshold_strict": {
            "type": "integer",
            "description": "Identity threshold used when an id-based lookup was attempted and failed",
            "default": 75
        },
        "max_alternate_names": {
            "type": "integer",
            "description": "Alternate names tried when the first search yields nothing",
            "default": 3
        }
    },
    "Parsing": {
        "tab": "Scrapers",
        "excluded_episode_numbers": {
            "type": "list",
            "description": "Numbers never accepted as episode numbers (resolution and aspect literals)",
            "default": DEFAULT_EXCLUDED_EPISODE_NUMBERS
        },
        "max_batch_span": {
            "type": "integer",
            "description": "Widest episode range accepted as a batch range",
            "default": 200
        }
    },
    "Debrid": {
        "tab": "Debrid",
        "poll_interval": {
            "type": "float",
            "description": "Seconds between status polls while a release downloads",
            "default": 5.0
        },
        "max_poll_attempts": {
            "type": "integer",
            "description": "Status polls before reporting the release as pending",
            "default": 6
        },
        "request_timeout": {
            "type": "integer",
            "description": "Timeout in seconds for a debrid API request",
            "default": 30
        }
    },
    "Cache": {
        "tab": "Advanced",
        "search_ttl": {
            "type": "integer",
            "description": "Seconds an indexer response stays cached",
            "default": 600
        },
        "torrent_ttl": {
            "type": "integer",
            "description": "Seconds an acquired candidate list stays cached",
            "default": 900
        },
        "direct_url_ttl": {
            "type": "integer",
            "description": "Seconds a resolved direct URL stays cached",
            "default": 10800
        },
        "max_entries": {
            "type": "integer",
            "description": "Entry ceiling for each cache",
            "default": 500
        }
    },
    "Debug": {
        "tab": "Advanced",
        "logging_level": {
            "type": "string",
            "description": "Console logging level",
            "default": "INFO",
            "options": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        },
        "log_format": {
            "type": "string",
            "description": "Console log format",
            "default": "console",
            "options": ["console", "json"]
        }
    }
}
