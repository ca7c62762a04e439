from linkdump.services.ingest_service import IngestService
from linkdump.services.query_service import all_tags, list_links

DUMP = """\
* [Rust](https://github.com/rust-lang/rust)
    - tags: rust, compilers
* [Blog](https://blog.test/post)
    - tags: writing
* [Nothing](https://nothing.test)
"""


def test_list_links_filters_by_url_glob(session, clock):
    IngestService(clock).ingest_text(session, DUMP, source="week.md")

    assert [link.url for link in list_links(session)] == [
        "https://github.com/rust-lang/rust",
        "https://blog.test/post",
        "https://nothing.test",
    ]
    assert [link.url for link in list_links(session, "*github.com*")] == [
        "https://github.com/rust-lang/rust"
    ]


def test_list_links_filters_by_tag_glob(session, clock):
    IngestService(clock).ingest_text(session, DUMP, source="week.md")

    assert [link.url for link in list_links(session, tag="comp*")] == [
        "https://github.com/rust-lang/rust"
    ]
    assert list_links(session, tag="missing") == []


def test_all_tags_is_sorted_and_distinct(session, clock):
    IngestService(clock).ingest_text(session, DUMP, source="week.md")
    assert all_tags(session) == ["compilers", "rust", "writing"]
