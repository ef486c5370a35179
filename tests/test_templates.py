from datetime import date
from pathlib import Path

import pytest

from folio.collections import DocumentCollection
from folio.config import SiteConfig
from folio.content import Document
from folio.errors import RenderError
from folio.renderers import Heading
from folio.resolver import resolve
from folio.templates import TemplateEngine, render_toc


def make_doc(**overrides):
    values = dict(
        slug="hello",
        title="Hello <World>",
        date=date(2024, 1, 1),
        draft=False,
        tags=frozenset({"C++"}),
        extra={},
        body="",
        content="<p>Body</p>",
        path=Path("content/hello.md"),
    )
    values.update(overrides)
    return Document(**values)


def test_render_toc_nests_levels():
    headings = [
        Heading("a", "A", 2),
        Heading("b", "B", 3),
        Heading("c", "C", 2),
    ]
    assert str(render_toc(headings)) == (
        '<ul><li><a href="#a">A</a><ul><li><a href="#b">B</a></li></ul></li>'
        '<li><a href="#c">C</a></li></ul>'
    )
    assert str(render_toc([])) == ""


def test_render_toc_escapes_text():
    assert "&lt;T&gt;" in str(render_toc([Heading("t", "<T>", 2)]))


def test_url_for_and_tag_url():
    engine = TemplateEngine(SiteConfig())
    assert engine.url_for("/hello/") == "/hello/"
    assert engine.tag_url("C++") == "/tags/C%2B%2B/"
    assert engine.url_for("https://cdn.example/x.js") == "https://cdn.example/x.js"

    engine = TemplateEngine(SiteConfig(base_url="https://example.com/"))
    assert engine.url_for("/hello/") == "https://example.com/hello/"


def test_page_template_renders_document():
    engine = TemplateEngine(SiteConfig(title="Blog"))
    doc = make_doc(toc=[Heading("intro", "Intro", 2)], extra={"toc": True, "keywords": "k1"})
    resolution = resolve([doc])
    html = engine.render(
        "page.html", {"document": doc, "taxonomy": resolution.taxonomy}, doc.path
    )
    assert "<title>Hello &lt;World&gt; | Blog</title>" in html
    assert "<p>Body</p>" in html
    assert 'href="/tags/C%2B%2B/"' in html
    assert '<a href="#intro">Intro</a>' in html
    assert '<meta name="keywords" content="k1">' in html
    assert "katex" not in html


def test_page_description_replaces_site_description():
    engine = TemplateEngine(SiteConfig(description="Site blurb"))
    doc = make_doc(extra={"description": "Page blurb"})
    html = engine.render("page.html", {"document": doc, "taxonomy": {}}, doc.path)
    assert html.count('name="description"') == 1
    assert '<meta name="description" content="Page blurb">' in html

    plain = engine.render("page.html", {"document": make_doc(), "taxonomy": {}}, doc.path)
    assert plain.count('name="description"') == 1
    assert '<meta name="description" content="Site blurb">' in plain


def test_math_pages_load_katex():
    engine = TemplateEngine(SiteConfig())
    doc = make_doc(extra={"math": True, "math_auto_render": True})
    html = engine.render("page.html", {"document": doc, "taxonomy": {}}, doc.path)
    assert "katex.min.js" in html
    assert "auto-render" in html


def test_user_templates_override_builtins(tmp_path):
    (tmp_path / "index.html").write_text(
        "{% for d in documents %}[{{ d.slug }}]{% endfor %}", encoding="utf-8"
    )
    engine = TemplateEngine(SiteConfig(), tmp_path)
    html = engine.render(
        "index.html", {"documents": DocumentCollection([make_doc()])}, Path("index.html")
    )
    assert html == "[hello]"
    # Templates the site does not override still come from the package
    assert "Not found" in engine.render("404.html", {}, Path("404.html"))


def test_template_syntax_error_reports_line(tmp_path):
    (tmp_path / "page.html").write_text("ok\n{% if %}\n", encoding="utf-8")
    engine = TemplateEngine(SiteConfig(), tmp_path)
    with pytest.raises(RenderError) as excinfo:
        engine.render("page.html", {}, Path("content/x.md"))
    assert excinfo.value.line == 2
    assert "syntax" in excinfo.value.message


def test_missing_template_is_render_error(tmp_path):
    engine = TemplateEngine(SiteConfig(), tmp_path)
    with pytest.raises(RenderError, match="Template not found"):
        engine.render("nope.html", {}, Path("content/x.md"))


def test_runtime_template_error_names_source(tmp_path):
    (tmp_path / "page.html").write_text("{{ document.title.missing() }}", encoding="utf-8")
    engine = TemplateEngine(SiteConfig(), tmp_path)
    with pytest.raises(RenderError) as excinfo:
        engine.render("page.html", {"document": make_doc()}, Path("content/hello.md"))
    assert excinfo.value.source_path == Path("content/hello.md")
