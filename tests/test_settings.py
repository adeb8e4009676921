import unittest
import sys
import os
import json
import tempfile
import logging
from unittest.mock import patch

# Add the project root to the path so we can import modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from animestream.utilities import settings
from animestream.utilities.settings_schema import DEFAULT_EXCLUDED_EPISODE_NUMBERS
from animestream.scraper.functions.title_classifier import get_default_classifier, reset_classifier_cache


class TestSettings(unittest.TestCase):
    """JSON config reads with schema defaults"""

    def setUp(self):
        logging.basicConfig(level=logging.ERROR)
        self.config_dir = tempfile.TemporaryDirectory()
        self.env = patch.dict(os.environ, {'USER_CONFIG': self.config_dir.name})
        self.env.start()

    def tearDown(self):
        self.env.stop()
        self.config_dir.cleanup()
        reset_classifier_cache()

    def write_config(self, content):
        with open(os.path.join(self.config_dir.name, 'config.json'), 'w', encoding='utf-8') as f:
            f.write(content if isinstance(content, str) else json.dumps(content))

    def test_schema_defaults_without_config(self):
        self.assertEqual(settings.load_config(), {})
        self.assertEqual(settings.get_setting('Debrid', 'max_poll_attempts'), 6)
        self.assertEqual(settings.get_setting('Scraping', 'nyaa_url'), 'https://nyaa.si')
        self.assertEqual(settings.get_setting('Parsing', 'excluded_episode_numbers'), DEFAULT_EXCLUDED_EPISODE_NUMBERS)

    def test_explicit_default_wins_over_schema(self):
        self.assertEqual(settings.get_setting('Unknown', 'key', 'fallback'), 'fallback')

    def test_set_and_get(self):
        settings.set_setting('Debrid', 'poll_interval', 2.5)
        self.assertEqual(settings.get_float_setting('Debrid', 'poll_interval'), 2.5)
        self.assertEqual(settings.get_setting('Debrid'), {'poll_interval': 2.5})

    def test_boolean_strings_are_coerced(self):
        self.write_config({'Scraping': {'nyaa_enabled': 'False'}})
        self.assertIs(settings.get_setting('Scraping', 'nyaa_enabled'), False)

    def test_urls_are_validated(self):
        self.write_config({'Scraping': {'nyaa_url': 'nyaa.example.org/'}})
        self.assertEqual(settings.get_setting('Scraping', 'nyaa_url'), 'http://nyaa.example.org')

    def test_invalid_integer_falls_back(self):
        self.write_config({'Cache': {'max_entries': 'lots'}})
        self.assertEqual(settings.get_int_setting('Cache', 'max_entries'), 500)

    def test_numeric_strings_are_accepted(self):
        self.write_config({'Cache': {'search_ttl': '30'}})
        self.assertEqual(settings.get_int_setting('Cache', 'search_ttl'), 30)

    def test_corrupt_config_uses_backup(self):
        self.write_config('{not json')
        with open(os.path.join(self.config_dir.name, 'config.json.backup'), 'w', encoding='utf-8') as f:
            json.dump({'Debrid': {'max_poll_attempts': 3}}, f)
        self.assertEqual(settings.get_int_setting('Debrid', 'max_poll_attempts'), 3)

    def test_corrupt_config_without_backup(self):
        self.write_config('{not json')
        self.assertEqual(settings.load_config(), {})

    def test_excluded_numbers_are_configurable(self):
        self.write_config({'Parsing': {'excluded_episode_numbers': [5]}})
        reset_classifier_cache()
        classifier = get_default_classifier()
        self.assertIn(5, classifier.excluded_numbers)
        self.assertNotIn(1080, classifier.excluded_numbers)

    def test_malformed_exclusions_use_defaults(self):
        self.write_config({'Parsing': {'excluded_episode_numbers': 'none'}})
        reset_classifier_cache()
        self.assertIn(1080, get_default_classifier().excluded_numbers)


if __name__ == '__main__':
    unittest.main()
