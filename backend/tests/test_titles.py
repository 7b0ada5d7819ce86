"""Title parsing and wikitext section tests."""
import pytest

from modqueue.utils.titles import NS_FILE, NS_MAIN, NS_USER, Title, user_page
from modqueue.utils.wikitext import get_section, replace_section


# --- Titles ---

def test_parse_main_namespace():
    title = Title.parse("foo bar")
    assert title.namespace == NS_MAIN
    assert title.dbkey == "Foo_bar"
    assert str(title) == "Foo bar"


def test_parse_namespace_prefix():
    title = Title.parse("Talk:Foo")
    assert title == Title(1, "Foo")
    assert title.prefixed_text == "Talk:Foo"


def test_parse_file_title():
    assert Title.parse("File:Cat.png") == Title(NS_FILE, "Cat.png")


def test_unknown_prefix_stays_in_main_namespace():
    title = Title.parse("Foo:Bar")
    assert title == Title(NS_MAIN, "Foo:Bar")


def test_invalid_titles():
    with pytest.raises(ValueError):
        Title.parse("")
    with pytest.raises(ValueError):
        Title.parse("A[b]")


def test_user_page():
    assert user_page("Alice") == Title(NS_USER, "Alice")
    assert user_page("127.0.0.1") == Title(NS_USER, "127.0.0.1")
    assert user_page("[bad") is None


# --- Sections ---

TEXT = "Lead\n== One ==\nfirst\n=== Sub ===\nnested\n== Two ==\nsecond"


def test_get_section():
    assert get_section(TEXT, 0) == "Lead"
    assert get_section(TEXT, 1) == "== One ==\nfirst\n=== Sub ===\nnested"
    assert get_section(TEXT, 2) == "=== Sub ===\nnested"
    assert get_section(TEXT, 3) == "== Two ==\nsecond"


def test_get_missing_section():
    assert get_section(TEXT, 4) is None
    assert get_section(TEXT, -1) is None


def test_replace_section():
    result = replace_section(TEXT, 3, "== Two ==\nchanged")
    assert result.endswith("== Two ==\nchanged")
    assert result.startswith("Lead\n== One ==")


def test_replace_missing_section():
    assert replace_section(TEXT, 9, "x") is None
