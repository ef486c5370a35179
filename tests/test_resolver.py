from datetime import date
from pathlib import Path

from folio.collections import DocumentCollection, TaxonomyIndex
from folio.content import Document
from folio.resolver import build_taxonomy, check_links, internal_link_slug, resolve


def make_doc(slug, day=None, tags=(), draft=False, links=(), body=""):
    return Document(
        slug=slug,
        title=slug.title(),
        date=date(2024, 1, day) if day else None,
        draft=draft,
        tags=frozenset(tags),
        extra={},
        body=body,
        content="",
        path=Path(f"content/{slug}.md"),
        body_offset=4,
        links=list(links),
    )


def test_collection_filters_and_sorts():
    docs = DocumentCollection(
        [
            make_doc("b", 2, tags=["x"]),
            make_doc("a", 2),
            make_doc("c", 3, draft=True),
            make_doc("d"),
        ]
    )
    assert docs.sorted().slugs() == ["c", "a", "b", "d"]
    assert docs.published().slugs() == ["b", "a", "d"]
    assert docs.drafts().slugs() == ["c"]
    assert docs.with_tag("x").slugs() == ["b"]
    assert docs.latest(2).slugs() == ["c", "a"]
    assert len(docs) == 4
    assert docs[0].slug == "b"


def test_taxonomy_index_is_ordered():
    index = build_taxonomy(
        [make_doc("old", 1, tags=["rust", "C++"]), make_doc("new", 5, tags=["C++"])]
    )
    assert isinstance(index, TaxonomyIndex)
    assert list(index) == ["C++", "rust"]
    assert index["C++"].slugs() == ["new", "old"]
    assert len(index) == 2


def test_resolve_excludes_drafts_everywhere():
    corpus = [make_doc("live", 1, tags=["t"]), make_doc("wip", 2, tags=["t", "w"], draft=True)]
    resolution = resolve(corpus)
    assert resolution.documents.slugs() == ["live"]
    assert list(resolution.taxonomy) == ["t"]


def test_resolve_includes_drafts_when_asked():
    corpus = [make_doc("live", 1), make_doc("wip", draft=True)]
    resolution = resolve(corpus, include_drafts=True)
    assert resolution.documents.slugs() == ["live", "wip"]


def test_resolve_is_deterministic():
    corpus = [make_doc(s, d, tags=["t"]) for s, d in [("x", 1), ("y", 1), ("z", 2)]]
    first = resolve(corpus)
    second = resolve(list(reversed(corpus)))
    assert first.documents.slugs() == second.documents.slugs()
    assert {k: v.slugs() for k, v in first.taxonomy.items()} == {
        k: v.slugs() for k, v in second.taxonomy.items()
    }


def test_internal_link_slug():
    assert internal_link_slug("/blog/hello") == "hello"
    assert internal_link_slug("/blog/hello/#intro") == "hello"
    assert internal_link_slug("/blog/notes/deep?x=1") == "notes/deep"
    assert internal_link_slug("/about/") is None
    assert internal_link_slug("https://example.com/blog/a", "https://example.com/") == "a"
    assert internal_link_slug("https://other.org/blog/a", "https://example.com") is None


def test_check_links_warns_once_per_target():
    doc = make_doc(
        "post",
        1,
        links=["/blog/missing", "/blog/missing", "/blog/other", "https://x.org"],
        body="a\n[m](/blog/missing)\n[o](/blog/other)\n",
    )
    warnings = check_links([doc], known={"other"})
    assert len(warnings) == 1
    assert warnings[0].kind == "LinkWarning"
    assert warnings[0].line == 6


def test_links_resolve_against_blog_prefixed_identifiers():
    doc = make_doc("post", 1, links=["/blog/intro"])
    assert check_links([doc], known={"blog/intro"}) == []


def test_links_to_drafts_are_unresolved():
    corpus = [
        make_doc("live", 1, links=["/blog/wip"], body="[w](/blog/wip)\n"),
        make_doc("wip", 2, draft=True),
    ]
    assert len(resolve(corpus).warnings) == 1
    assert resolve(corpus, include_drafts=True).warnings == []
