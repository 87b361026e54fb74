"""
Tests for HTML-to-text extraction.
"""

from myfeed.content_extractor import ContentExtractor, clean_text, html_to_text, strip_html

BODY = "This sentence is part of the real article body. " * 10

ARTICLE_PAGE = f"""
<html>
  <head><title>Story</title><script>var tracking = 1;</script></head>
  <body>
    <nav>Home | World | Sport</nav>
    <div class="sidebar">Trending stories you might like</div>
    <article>
      <h1>The story</h1>
      <p>{BODY}</p>
      <div class="share-buttons">Share on social media</div>
    </article>
    <footer>Copyright 2024</footer>
  </body>
</html>
"""


class TestContentExtractor:
    """Tests for ContentExtractor.extract."""

    def test_prefers_article_container(self):
        text = ContentExtractor().extract(ARTICLE_PAGE)
        assert text.startswith("The story")
        assert "real article body" in text

    def test_removes_boilerplate(self):
        text = ContentExtractor().extract(ARTICLE_PAGE)
        assert "tracking" not in text
        assert "Home | World" not in text
        assert "Trending" not in text
        assert "Share on social" not in text
        assert "Copyright" not in text

    def test_collapses_whitespace(self):
        text = ContentExtractor().extract(ARTICLE_PAGE)
        assert "  " not in text
        assert "\n" not in text

    def test_falls_back_to_body(self):
        page = f"<html><body><div><p>{BODY}</p></div></body></html>"
        text = ContentExtractor().extract(page)
        assert "real article body" in text

    def test_skips_short_container(self):
        """A container with too little text does not win over the body."""
        page = f"<html><body><main>Tiny</main><div><p>{BODY}</p></div></body></html>"
        text = ContentExtractor().extract(page)
        assert "real article body" in text

    def test_returns_none_for_thin_page(self):
        assert ContentExtractor().extract("<html><body><p>Too short</p></body></html>") is None

    def test_returns_none_for_empty_input(self):
        assert ContentExtractor().extract("") is None
        assert ContentExtractor().extract(None) is None

    def test_caps_length(self):
        text = ContentExtractor(max_length=100).extract(ARTICLE_PAGE)
        assert len(text) == 100


class TestTextHelpers:

    def test_clean_text(self):
        assert clean_text("  a \n\n b\t c  ") == "a b c"
        assert clean_text(None) == ""
        assert clean_text("abcdef", max_length=3) == "abc"

    def test_strip_html(self):
        assert strip_html("<p>Hello <em>world</em></p>") == "Hello world"
        assert strip_html("") == ""

    def test_html_to_text_keeps_paragraphs(self):
        assert html_to_text("<p>One</p><p>Two</p>") == "One\nTwo"
        assert html_to_text(None) == ""
