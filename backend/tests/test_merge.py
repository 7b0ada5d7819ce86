"""Three-way merge tests."""
from modqueue.services.merge import merge3, merge_lines


def test_non_overlapping_changes_are_combined():
    base = "line1\nline2\nline3"
    mine = "LINE1\nline2\nline3"
    theirs = "line1\nline2\nLINE3"
    assert merge3(base, mine, theirs) == "LINE1\nline2\nLINE3"


def test_append_and_prepend_merge():
    assert merge3("Intro", "Intro\nMine", "Theirs\nIntro") == "Theirs\nIntro\nMine"


def test_same_change_on_both_sides_taken_once():
    assert merge3("a\nb", "a\nX", "a\nX") == "a\nX"


def test_unchanged_side_takes_other_side():
    assert merge3("a\nb\nc", "a\nb\nc", "a\nB\nc") == "a\nB\nc"
    assert merge3("a\nb\nc", "a\nB\nc", "a\nb\nc") == "a\nB\nc"


def test_deletion_merges_with_unrelated_edit():
    base = "one\ntwo\nthree\nfour"
    mine = "one\nthree\nfour"
    theirs = "one\ntwo\nthree\nFOUR"
    assert merge3(base, mine, theirs) == "one\nthree\nFOUR"


def test_conflicting_appends():
    assert merge3("A", "A\nB", "A\nC") is None


def test_conflicting_edits_of_same_line():
    assert merge3("x\ny\nz", "x\nmine\nz", "x\ntheirs\nz") is None


def test_empty_base_for_new_page():
    # Both created the page: only identical text merges
    assert merge3("", "Hello", "Hello") == "Hello"
    assert merge3("", "Hello", "World") is None


def test_merge_lines_keeps_stable_lines():
    base = ["a\n", "b\n", "c\n"]
    assert merge_lines(base, base, base) == base
