"""Tests for heuristic spam detection."""
import pytest

from contact_relay.services.spam_filter import is_spam


class TestSpamKeywords:
    @pytest.mark.parametrize(
        "content",
        [
            "Buy cheap viagra now",
            "Visit our CASINO tonight",
            "Congratulations, you are a winner",
            "You won the lottery",
            "Click here for details",
            "Free money for everyone",
            "Make money fast with this trick",
            "Work from home and earn",
        ],
    )
    def test_keywords_detected(self, content):
        assert is_spam(content) is True

    def test_keyword_inside_word_ignored(self):
        # "poker" only matches as a whole word
        assert is_spam("The fire pokers are next to the hearth") is False


class TestSpamStructure:
    def test_three_urls_is_spam(self):
        content = "See http://a.example https://b.example http://c.example"
        assert is_spam(content) is True

    def test_two_urls_allowed(self):
        content = "My site is https://example.com and my blog is https://blog.example.com"
        assert is_spam(content) is False

    def test_repeated_character_run(self):
        assert is_spam("Hell" + "o" * 15 + " there") is True

    def test_short_repetition_allowed(self):
        assert is_spam("Wow!!!!! That is great") is False

    def test_long_non_ascii_run(self):
        assert is_spam("Hi " + "你好世界" * 6) is True

    def test_short_non_ascii_allowed(self):
        assert is_spam("Merci beaucoup, à bientôt et ça va très bien") is False


class TestLegitimateContent:
    def test_ordinary_message(self):
        content = "John Doe Question about services I would like to know more about your services."
        assert is_spam(content) is False

    def test_empty_content(self):
        assert is_spam("") is False
