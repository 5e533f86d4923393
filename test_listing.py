import pytest

from serial_parser.chapter import extract_content, hidden_classes
from serial_parser.grammar import lightnovelwp
from serial_parser.listing import (
    make_soup,
    parse_novels,
    popular_url,
    relative_path,
    search_url,
)
from serial_parser.schemas import DEFAULT_COVER

SITE = "https://kolnovel.site/"

LISTING = """<html><body><div class="listupd">
<article class="bs"><div class="bsx"><a href="https://kolnovel.site/series/alpha/" title="Alpha &amp; Omega"><div class="limit"><img src="https://kolnovel.site/a.jpg" data-src="https://cdn.kolnovel.site/a-lazy.jpg"></div><div class="tt">Alpha</div></a></div></article>
<article class="bs"><div class="bsx"><a href="https://kolnovel.com/series/beta/" title="Beta"><img src="https://kolnovel.site/b.jpg"></a></div></article>
<article class="bs"><div class="bsx"><a href="https://kolnovel.site/series/gamma/" title="Gamma"></a></div></article>
<article><p>Advert</p></article>
</div></body></html>
"""

CHAPTER = """<html><body><article><style>.xyz{display:none} .abc , .q{color:red}</style>
<div class="epcontent entry-content"><p>One.</p><p class="xyz">Decoy</p><div class="code-block"><p>Ad</p></div><script>var a = 1;</script><p>Two.</p></div>
<div class="bottomnav"><a href="/next/">Next</a></div>
</article></body></html>
"""


@pytest.fixture
def grammar():
    return lightnovelwp("kolnovel", "Kol Novel", SITE, lang="Arabic", strip_style_classes=True)


def test_parse_novels(grammar):
    novels = parse_novels(LISTING, grammar)
    assert [(n.name, n.path, n.cover) for n in novels] == [
        ("Alpha & Omega", "series/alpha/", "https://cdn.kolnovel.site/a-lazy.jpg"),
        ("Beta", "series/beta/", "https://kolnovel.site/b.jpg"),
        ("Gamma", "series/gamma/", DEFAULT_COVER),
    ]


def test_parse_novels_on_empty_body(grammar):
    assert parse_novels("", grammar) == []
    assert parse_novels("<html><body><p>No results</p></body></html>", grammar) == []


def test_relative_path():
    assert relative_path("https://kolnovel.site/series/a/", SITE) == "series/a/"
    assert relative_path("https://mirror.example/series/a/", SITE) == "series/a/"
    assert relative_path("series/a/", SITE) == "series/a/"


def test_popular_url(grammar):
    assert popular_url(grammar, 2) == "https://kolnovel.site/series/?page=2"

    url = popular_url(grammar, 1, latest=True, filters={
        "genre[]": ["action", "drama"],
        "status": "completed",
        "type": "",
    })
    assert url == (
        "https://kolnovel.site/series/?page=1&order=latest"
        "&genre[]=action&genre[]=drama&status=completed"
    )


def test_search_url(grammar):
    assert search_url(grammar, "dragon king", 3) == "https://kolnovel.site/page/3/?s=dragon%20king"
    assert search_url(grammar, "a/b&c") == "https://kolnovel.site/page/1/?s=a%2Fb%26c"


def test_make_soup_finds_articles():
    soup = make_soup(LISTING)
    assert len(soup.find_all("article")) == 4


def test_hidden_classes():
    assert hidden_classes(make_soup(CHAPTER)) == {"xyz", "abc", "q"}


def test_chapter_content_strips_ads_scripts_and_decoys(grammar):
    assert extract_content(CHAPTER, grammar) == "<p>One.</p>\n<p>Two.</p>"


def test_chapter_content_keeps_styled_paragraphs_and_ads_when_not_asked(grammar):
    plain = grammar.model_copy(update={"strip_style_classes": False})
    content = extract_content(CHAPTER, plain)
    assert content == '<p>One.</p>\n<p class="xyz">Decoy</p>\n<p>Ad</p>\n<p>Two.</p>'


def test_hidden_classes_read_from_stylesheet_text():
    soup = make_soup("<article><style>.hide1 { display: none }</style><p class='hide1'>x</p></article>")
    assert hidden_classes(soup) == {"hide1"}
    content = extract_content(
        "<article><style>.hide1{display:none}</style>"
        "<div class='epcontent'><p class='hide1'>Decoy</p><p>Real</p></div></article>",
        lightnovelwp("kolnovel", "Kol Novel", SITE, strip_style_classes=True),
    )
    assert content == "<p>Real</p>"


def test_chapter_without_container(grammar):
    assert extract_content("<html><body><p>Hi</p></body></html>", grammar) == ""
