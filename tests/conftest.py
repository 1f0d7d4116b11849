"""Shared fixtures for the conversion pipeline tests."""
import pytest

from pagebuilder.analyzer import analyze_html
from pagebuilder.hierarchy import build_hierarchy
from pagebuilder.analyzer import get_typography_extractor
from pagebuilder.models import ConversionOptions
from pagebuilder.recognizer import get_recognizer


HEADING_PAGE = '<div><h1 style="font-size:32px">Title</h1><p>Body</p></div>'

TWO_COLUMN_PAGE = (
    '<section>'
    '<div class="row">'
    '<div class="col-6"><h2>Left</h2><p>Left body</p></div>'
    '<div class="col-6"><h2>Right</h2><p>Right body</p></div>'
    '</div>'
    '</section>'
)

LANDING_PAGE = """
<html>
<head><title>Landing</title></head>
<body>
  <header style="background-color: #222222; padding: 20px 40px">
    <h1 style="font-size: 40px; font-family: 'Poppins', sans-serif; font-weight: 700; color: #ffffff">Acme</h1>
  </header>
  <section class="hero" style="padding: 80px 0; background-color: rgb(240, 240, 240)">
    <h2 style="font-size: 32px; font-family: Poppins">Build faster</h2>
    <p style="font-size: 16px; font-family: 'Open Sans'; line-height: 1.6">Ship pages in minutes.</p>
    <a class="btn btn-primary" href="/signup" style="background-color: #0066ff; color: #fff; padding: 12px 24px">Get started</a>
  </section>
  <section>
    <div class="row">
      <div class="col-4"><img src="https://cdn.example.com/a.png" alt="A"><h3>One</h3><p>First feature</p></div>
      <div class="col-4"><img src="https://cdn.example.com/b.png" alt="B"><h3>Two</h3><p>Second feature</p></div>
      <div class="col-4"><img src="https://cdn.example.com/c.png" alt="C"><h3>Three</h3><p>Third feature</p></div>
    </div>
  </section>
  <section>
    <ul><li>Fast</li><li>Cheap</li><li>Good</li></ul>
    <blockquote>Great product<cite>Jane</cite></blockquote>
    <hr>
    <marquee>Legacy ticker</marquee>
  </section>
</body>
</html>
"""


def prepare(html, min_confidence=None):
    """Analyze, recognize and build the hierarchy for a snippet."""
    root = analyze_html(html)
    recognitions = get_recognizer().recognize_tree(root, min_confidence)
    hierarchy = build_hierarchy(root, recognitions)
    typography = get_typography_extractor().extract(root, recognitions)
    return root, recognitions, hierarchy, typography


@pytest.fixture
def heading_page():
    return prepare(HEADING_PAGE)


@pytest.fixture
def two_column_page():
    return prepare(TWO_COLUMN_PAGE)


@pytest.fixture
def landing_page():
    return prepare(LANDING_PAGE)


@pytest.fixture
def options():
    return ConversionOptions()
