import unittest
import sys
import os
import logging

# Add the project root to the path so we can import modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from animestream.models import ContentType
from animestream.scraper.functions.title_classifier import TitleClassifier, clean_title, first_match, Rule
import re


class TestTitleClassifier(unittest.TestCase):
    """Classification of release titles into episodes, batches, movies and specials."""

    def setUp(self):
        logging.basicConfig(level=logging.ERROR)
        self.classifier = TitleClassifier()

    def test_absolute_episode_after_dash(self):
        info = self.classifier.classify("[SubsPlease] Frieren - 05 (1080p) [ABCD1234].mkv")
        self.assertEqual(info.content_type, ContentType.EPISODE)
        self.assertEqual(info.episode, 5)
        self.assertIsNone(info.season)
        self.assertTrue(info.is_absolute)

    def test_season_and_dash_episode(self):
        info = self.classifier.classify("[Judas] Jujutsu Kaisen S2 - 10 [1080p].mkv")
        self.assertEqual(info.content_type, ContentType.EPISODE)
        self.assertEqual((info.season, info.episode), (2, 10))
        self.assertFalse(info.is_absolute)

    def test_sxe_form(self):
        info = self.classifier.classify("Show.Name.S01E05.1080p.WEB.x264")
        self.assertEqual((info.season, info.episode), (1, 5))

    def test_ordinal_season(self):
        info = self.classifier.classify("[Group] Show Name 2nd Season - 07 [720p]")
        self.assertEqual((info.season, info.episode), (2, 7))

    def test_roman_numeral_season(self):
        info = self.classifier.classify("[Group] Overlord III - 05 [1080p]")
        self.assertEqual((info.season, info.episode), (3, 5))

    def test_cjk_episode(self):
        info = self.classifier.classify("[Group] 葬送のフリーレン 第05話 [1080p]")
        self.assertEqual(info.episode, 5)

    def test_bracketed_batch_range(self):
        info = self.classifier.classify("[Group] Show Name (01-12) [BD 1080p]")
        self.assertEqual(info.content_type, ContentType.BATCH)
        self.assertTrue(info.is_batch)
        self.assertEqual(info.batch_range, (1, 12))

    def test_season_episode_range(self):
        info = self.classifier.classify("[Group] Show Name S01E01-E12 [1080p]")
        self.assertTrue(info.is_batch)
        self.assertEqual(info.season, 1)
        self.assertEqual(info.batch_range, (1, 12))

    def test_season_without_episode_is_batch(self):
        info = self.classifier.classify("[Group] Show Name S3 [BD 1080p]")
        self.assertEqual(info.content_type, ContentType.BATCH)
        self.assertEqual(info.season, 3)
        self.assertIsNone(info.batch_range)

    def test_batch_vocabulary(self):
        info = self.classifier.classify("Show Name Season 2 Complete [1080p]")
        self.assertTrue(info.is_batch)
        self.assertEqual(info.season, 2)

    def test_multi_season_batch(self):
        info = self.classifier.classify("[Group] Show Name S1-S3 [1080p]")
        self.assertTrue(info.is_batch)
        self.assertTrue(info.is_multi_season)
        self.assertIsNone(info.season)

    def test_single_prefix_season_ranges(self):
        for title in ("[Group] Show Season 1-2 Complete [1080p]",
                      "[Group] Show S01-02 [1080p]",
                      "[Group] Show Name Seasons 1 to 3 [1080p]"):
            with self.subTest(title=title):
                info = self.classifier.classify(title)
                self.assertTrue(info.is_multi_season)
                self.assertIsNone(info.batch_range)
                self.assertIsNone(info.episode)

    def test_spaced_season_dash_is_still_an_episode(self):
        info = self.classifier.classify("[Group] Show S01 - 02 [1080p]")
        self.assertFalse(info.is_multi_season)
        self.assertEqual(info.season, 1)
        self.assertEqual(info.episode, 2)

    def test_bare_range_in_show_name_is_not_a_batch(self):
        info = self.classifier.classify("[Group] Show 2-5 Title - 03 [1080p]")
        self.assertEqual(info.content_type, ContentType.EPISODE)
        self.assertFalse(info.is_batch)
        self.assertIsNone(info.batch_range)
        self.assertEqual(info.episode, 3)

    def test_movie_with_number_and_year(self):
        info = self.classifier.classify("[Group] Show Name Movie 2 (2019) [1080p]")
        self.assertEqual(info.content_type, ContentType.MOVIE)
        self.assertEqual(info.movie_number, 2)
        self.assertEqual(info.year, 2019)

    def test_known_theatrical_title(self):
        info = self.classifier.classify("Kimetsu no Yaiba Mugen Ressha-hen [1080p]")
        self.assertEqual(info.content_type, ContentType.MOVIE)

    def test_special_number(self):
        info = self.classifier.classify("[Group] Show Name OVA 3 [720p]")
        self.assertEqual(info.content_type, ContentType.SPECIAL)
        self.assertEqual(info.special_number, 3)

    def test_preview_short_circuits(self):
        info = self.classifier.classify("[Group] Show Name - PV 2")
        self.assertEqual(info.content_type, ContentType.PREVIEW)
        self.assertIsNone(info.episode)

    def test_year_is_never_an_episode(self):
        info = self.classifier.classify("Show Name - 2019")
        self.assertIsNone(info.episode)
        info = self.classifier.classify("Show Name (2019) - 04")
        self.assertEqual(info.episode, 4)

    def test_resolution_literal_is_never_an_episode(self):
        self.assertIsNone(self.classifier.classify("Show Name - 1080").episode)

    def test_title_without_numbers(self):
        info = self.classifier.classify("[Group] Show Name [1080p]")
        self.assertIsNone(info.content_type)
        self.assertIsNone(info.episode)
        self.assertFalse(info.is_batch)

    def test_empty_title(self):
        info = self.classifier.classify("   ")
        self.assertIsNone(info.content_type)

    def test_configured_exclusions(self):
        classifier = TitleClassifier(excluded_numbers=[5])
        self.assertIsNone(classifier.classify("Show - 05").episode)
        self.assertEqual(classifier.classify("Show - 06").episode, 6)


class TestRangeGuards(unittest.TestCase):

    def setUp(self):
        self.classifier = TitleClassifier(max_batch_span=200)

    def test_valid_range(self):
        self.assertEqual(self.classifier.valid_range(1, 12), (1, 12))

    def test_rejected_ranges(self):
        self.assertIsNone(self.classifier.valid_range(5, 5))
        self.assertIsNone(self.classifier.valid_range(12, 1))
        self.assertIsNone(self.classifier.valid_range(1, 250))
        self.assertIsNone(self.classifier.valid_range(720, 1080))
        self.assertIsNone(self.classifier.valid_range(2019, 2020))

    def test_episode_number_guard(self):
        self.assertEqual(self.classifier.episode_number('12'), 12)
        self.assertIsNone(self.classifier.episode_number('480'))
        self.assertIsNone(self.classifier.episode_number('1999'))
        self.assertIsNone(self.classifier.episode_number(None))


class TestHelpers(unittest.TestCase):

    def test_clean_title_drops_technical_tokens(self):
        cleaned = clean_title("Show - 05 [1080p HEVC 10bit AAC 2.0] [ABCD1234].mkv")
        self.assertNotIn('1080', cleaned)
        self.assertNotIn('ABCD1234', cleaned)
        self.assertIn('05', cleaned)

    def test_first_match_tries_every_match(self):
        rules = [Rule('even', re.compile(r'(\d+)'), lambda m: int(m.group(1)) if int(m.group(1)) % 2 == 0 else None)]
        self.assertEqual(first_match(rules, "3 5 8"), ('even', 8))
        self.assertEqual(first_match(rules, "3 5"), (None, None))


if __name__ == '__main__':
    unittest.main()
