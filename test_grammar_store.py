import json

import pytest

from serial_parser.exceptions import SerialParserError
from serial_parser.grammar import (
    AdapterGrammar,
    OrdinalPolicy,
    Predicate,
    PredicateKind,
    attr_is,
    class_has,
    class_is,
    lightnovelwp,
    matches_any,
    tag_is,
)
from serial_parser.grammar_store import BUILTIN_GRAMMARS, GrammarStore, UnknownSite


def test_predicates():
    assert tag_is("li").matches("li", {})
    assert not tag_is("li").matches("ul", {"class": "li"})
    assert class_is("spe").matches("div", {"class": "spe"})
    assert not class_is("spe").matches("div", {"class": "spe extra"})
    assert class_has("eplister").matches("div", {"class": "bixbox eplister"})
    assert not class_has("eplister").matches("div", {})
    assert attr_is("itemprop", "description", tag="div").matches("div", {"itemprop": "description"})
    assert not attr_is("itemprop", "description", tag="div").matches("span", {"itemprop": "description"})


def test_empty_predicate_list_never_matches():
    assert not matches_any([], "div", {"class": "spe"})


def test_builtin_sites():
    assert set(BUILTIN_GRAMMARS) == {"knoxt", "kolnovel", "novelsparadise", "allnovelread"}
    assert all(g.reverse_chapters and g.has_locked for g in BUILTIN_GRAMMARS.values())
    assert not lightnovelwp("x", "X", "https://x.site/", has_locked=False).has_locked
    assert BUILTIN_GRAMMARS["kolnovel"].strip_style_classes
    assert BUILTIN_GRAMMARS["kolnovel"].lang == "Arabic"
    assert BUILTIN_GRAMMARS["allnovelread"].site == "https://allnovelread.com/"


def test_store_without_directory_serves_builtins():
    store = GrammarStore()
    assert store.get("knoxt") is BUILTIN_GRAMMARS["knoxt"]
    with pytest.raises(UnknownSite):
        store.get("nowhere")
    with pytest.raises(SerialParserError):
        store.put(lightnovelwp("x", "X", "https://x.site/"))


def test_put_and_get(tmp_path):
    store = GrammarStore(tmp_path)
    grammar = lightnovelwp(
        "newsite", "New Site", "https://new.site/",
        lang="Turkish", ordinal_policy=OrdinalPolicy.POSITION,
    )
    path = store.put(grammar)
    assert path == tmp_path / "newsite.json"
    assert json.loads(path.read_text(encoding="utf-8"))["chapters"]["number"][0] == {
        "kind": "attr_equals", "value": "epl-num", "attribute": "class", "tag": None,
    }
    assert store.get("newsite") == grammar
    assert "newsite" in store.list_sites()
    assert "knoxt" in store.list_sites()


def test_stored_grammar_overrides_builtin(tmp_path):
    store = GrammarStore(tmp_path)
    moved = BUILTIN_GRAMMARS["knoxt"].model_copy(update={"site": "https://knoxt.space.example/"})
    store.put(moved)
    assert store.get("knoxt").site == "https://knoxt.space.example/"
    assert store.delete("knoxt")
    assert store.get("knoxt").site == "https://knoxt.space/"
    assert not store.delete("knoxt")


def test_invalid_grammar_file(tmp_path):
    (tmp_path / "broken.json").write_text('{"id": "broken"}', encoding="utf-8")
    with pytest.raises(SerialParserError) as excinfo:
        GrammarStore(tmp_path).get("broken")
    assert "errors" in excinfo.value.details


def test_hand_written_grammar_file(tmp_path):
    (tmp_path / "custom.json").write_text(json.dumps({
        "id": "custom",
        "source_name": "Custom",
        "site": "https://custom.site/",
        "genres": {"container": [{"kind": "attr_equals", "value": "tags"}]},
    }), encoding="utf-8")
    grammar = GrammarStore(tmp_path).get("custom")
    assert isinstance(grammar, AdapterGrammar)
    assert grammar.genres.container == [Predicate(kind=PredicateKind.ATTR_EQUALS, value="tags")]
    assert grammar.genres.link == [tag_is("a")]
