# tests/unit/shared/utils/test_text_utils.py

"""Tests for text helpers used by the formats"""

# Third party imports
from hypothesis import given
from hypothesis import strategies as st

# Local imports
from biblio_export.shared.utils.text_utils import ascii_fold
from biblio_export.shared.utils.text_utils import first_significant_word
from biblio_export.shared.utils.text_utils import key_token
from biblio_export.shared.utils.text_utils import strip_markup
from biblio_export.shared.utils.text_utils import truncate_utf8


class TestKeyTokens:
    def test_ascii_fold(self):
        assert ascii_fold("Gödel Čapek") == "Godel Capek"

    def test_key_token_keeps_only_lowercase_alphanumerics(self):
        assert key_token("O'Brien-Smith") == "obriensmith"
        assert key_token("Müller") == "muller"

    def test_first_significant_word_skips_articles(self):
        assert first_significant_word("The Open Book") == "open"
        assert first_significant_word("La Révolution") == "revolution"

    def test_first_significant_word_all_stopwords(self):
        assert first_significant_word("The The") == "the"

    def test_first_significant_word_no_letters(self):
        assert first_significant_word("!!! ???") == ""

    @given(st.text())
    def test_key_token_is_ascii_alphanumeric(self, text: str) -> None:
        token = key_token(text)
        assert all(char in "abcdefghijklmnopqrstuvwxyz0123456789" for char in token)


class TestMarkupAndLength:
    def test_strip_markup(self):
        assert strip_markup("<p>One <em>two</em></p>\n<p>three</p>") == "One two three"

    def test_strip_markup_resolves_entities(self):
        assert strip_markup("<p>Text &amp; Data&nbsp;Mining</p>") == "Text & Data Mining"
        assert strip_markup("Use &lt;b&gt; for bold") == "Use <b> for bold"

    @given(st.text(), st.integers(min_value=0, max_value=64))
    def test_truncate_utf8_fits_and_is_prefix(self, text: str, limit: int) -> None:
        truncated = truncate_utf8(text, limit)
        assert len(truncated.encode("utf-8")) <= limit
        assert text.startswith(truncated)

    def test_truncate_never_splits_characters(self):
        assert truncate_utf8("ééé", 3) == "é"
