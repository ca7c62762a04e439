from linkdump.parsers.markdown import LinkDump, parse_link_text, parse_links, split_tag_text
from linkdump.parsers.via import FREEFORM, FRIEND, LINK, parse_via

DUMP = """\
# Links for the week

* [Foo](http://x.test "Foo")
* [Bar (the sequel)](https://bar.test/a_(b))
    - via: @alice https://alice.test
    - tags: Rust, databases, rust
    - notes:
        - first thought
        - second thought
* Plain title: https://plain.test/post
* https://bare.test
"""


def test_parses_every_link_in_order():
    links = parse_links(DUMP)
    assert [link.url for link in links] == [
        "http://x.test",
        "https://bar.test/a_(b)",
        "https://plain.test/post",
        "https://bare.test",
    ]


def test_title_from_anchor_text():
    foo, bar, plain, bare = parse_links(DUMP)
    assert foo.title == "Foo"
    assert bar.title == "Bar (the sequel)"
    assert plain.title == "Plain title"
    assert bare.title is None


def test_annotations_attach_to_the_preceding_link():
    foo, bar, _, _ = parse_links(DUMP)
    assert not foo.has_annotations
    assert bar.via == "@alice https://alice.test"
    assert bar.tags == {"rust", "databases"}
    assert bar.notes == ["first thought", "second thought"]
    assert bar.has_annotations


def test_inline_note_and_nested_tags():
    text = """\
- [A](https://a.test)
  - notes: - cool
  - tags:
    - one, two
    - three
"""
    (link,) = parse_links(text)
    assert link.notes == ["cool"]
    assert link.tags == {"one", "two", "three"}


def test_multiple_note_blocks_are_concatenated():
    text = """\
- [A](https://a.test)
    - notes: first
    - tags: x
    - notes:
        - second
"""
    (link,) = parse_links(text)
    assert link.notes == ["first", "second"]


def test_unknown_labels_and_their_children_are_ignored():
    text = """\
- [A](https://a.test)
    - rating: 5
        - nested under rating
    - notes: kept
"""
    (link,) = parse_links(text)
    assert link.notes == ["kept"]


def test_malformed_bullet_yields_warning_and_parsing_continues():
    text = """\
* this line has no link at all
    - notes: orphaned
* [One](https://one.test)
* [Two](https://two.test)
"""
    links, warnings = LinkDump(text, filename="week.md").parse()
    assert [link.url for link in links] == ["https://one.test", "https://two.test"]
    assert len(warnings) == 1
    assert warnings[0].line == 1
    assert warnings[0].reason == "no link found"
    assert str(warnings[0]).startswith("week.md:1: no link found")


def test_relative_url_is_rejected():
    assert parse_link_text("[Local](/just/a/path)") == "unparsable URL"


def test_prose_between_links_closes_the_current_link():
    text = """\
* [A](https://a.test)
Some paragraph text.
    - notes: not attached
"""
    (link,) = parse_links(text)
    assert link.notes == []


def test_iterating_a_dump_twice_gives_the_same_links():
    dump = LinkDump(DUMP)
    assert [link.url for link in dump] == [link.url for link in dump]


def test_split_tag_text_normalises():
    assert split_tag_text(" A, b ,a,, C ") == ("a", "b", "c")


def test_parse_via_kinds():
    friend = parse_via("@bob (https://bob.test)")
    assert friend.kind == FRIEND
    assert friend.friend_name == "bob"
    assert friend.friend_url == "https://bob.test"
    assert parse_via("https://news.test/item").kind == LINK
    assert parse_via("a podcast").kind == FREEFORM
    assert parse_via("@carol").friend_url is None


def test_thematic_break_is_prose_not_a_malformed_link():
    text = """\
* [A](https://a.test)
* * *
- - -
* [B](https://b.test)
"""
    links, warnings = LinkDump(text).parse()
    assert [link.url for link in links] == ["https://a.test", "https://b.test"]
    assert warnings == []


def test_code_block_notes_keep_their_indentation():
    text = """\
* [A](https://a.test)
    - notes:
        - try this:
        ```python
        def f():
            return 1

        ```
        - after the code
    - tags: python
"""
    (link,) = parse_links(text)
    assert link.notes == [
        "try this:",
        "```python",
        "def f():",
        "    return 1",
        "",
        "```",
        "after the code",
    ]
    assert link.tags == {"python"}
