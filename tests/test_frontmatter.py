from datetime import date
from pathlib import Path

import pytest

from folio.errors import FrontMatterError
from folio.frontmatter import parse_frontmatter, split_frontmatter

PATH = Path("content/post.md")


def test_split_requires_opening_fence_on_first_line():
    with pytest.raises(FrontMatterError) as excinfo:
        split_frontmatter('\n+++\ntitle = "x"\n+++\n', PATH)
    assert excinfo.value.line == 1

    with pytest.raises(FrontMatterError, match="closing"):
        split_frontmatter('+++\ntitle = "x"\n', PATH)


def test_split_returns_body_and_offset():
    source, body, offset = split_frontmatter('+++\ntitle = "x"\n+++\n# Body\n', PATH)
    assert source == 'title = "x"\n'
    assert body == "# Body\n"
    assert offset == 3


def test_fence_must_be_exact():
    with pytest.raises(FrontMatterError):
        split_frontmatter(' +++\ntitle = "x"\n+++\n', PATH)


def test_recognised_fields():
    text = (
        "+++\n"
        'title = "Move semantics"\n'
        "date = 2024-08-27\n"
        "[taxonomies]\n"
        'tags = ["C++", "performance"]\n'
        "[extra]\n"
        "toc = true\n"
        "math = true\n"
        "math_auto_render = true\n"
        'keywords = "C++, rvalue"\n'
        "+++\n"
        "Body\n"
    )
    frontmatter, body, offset = parse_frontmatter(text, PATH)
    assert frontmatter.title == "Move semantics"
    assert frontmatter.date == date(2024, 8, 27)
    assert frontmatter.draft is False
    assert frontmatter.tags == frozenset({"C++", "performance"})
    assert frontmatter.extra == {
        "toc": True,
        "math": True,
        "math_auto_render": True,
        "keywords": "C++, rvalue",
    }
    assert body == "Body\n"
    assert offset == 11


def test_unknown_fields_are_kept_in_extra():
    text = '+++\ntitle = "x"\ndate = 2024-01-01\ndescription = "d"\nweight = 3\n+++\n'
    frontmatter, _, _ = parse_frontmatter(text, PATH)
    assert frontmatter.extra == {"description": "d", "weight": 3}


def test_date_accepts_datetime_and_string():
    frontmatter, _, _ = parse_frontmatter(
        '+++\ntitle = "x"\ndate = 2024-01-01T10:00:00Z\n+++\n', PATH
    )
    assert frontmatter.date == date(2024, 1, 1)
    frontmatter, _, _ = parse_frontmatter('+++\ntitle = "x"\ndate = "2024-03-05"\n+++\n', PATH)
    assert frontmatter.date == date(2024, 3, 5)
    frontmatter, _, _ = parse_frontmatter('+++\ntitle = "x"\ndate = "2024-03-05T10:00:00"\n+++\n', PATH)
    assert frontmatter.date == date(2024, 3, 5)


def test_unparseable_date_names_its_line():
    with pytest.raises(FrontMatterError) as excinfo:
        parse_frontmatter('+++\ntitle = "x"\ndate = "yesterday"\n+++\n', PATH)
    assert excinfo.value.line == 3
    assert "yesterday" in excinfo.value.message


def test_date_string_with_trailing_text_is_rejected():
    with pytest.raises(FrontMatterError) as excinfo:
        parse_frontmatter('+++\ntitle = "x"\ndate = "2024-01-01garbage"\n+++\n', PATH)
    assert excinfo.value.line == 3
    assert "2024-01-01garbage" in excinfo.value.message


def test_missing_required_fields():
    with pytest.raises(FrontMatterError, match="title"):
        parse_frontmatter("+++\ndate = 2024-01-01\n+++\n", PATH)
    with pytest.raises(FrontMatterError, match="date"):
        parse_frontmatter('+++\ntitle = "x"\n+++\n', PATH)


def test_drafts_may_omit_title_and_date():
    frontmatter, _, _ = parse_frontmatter("+++\ndraft = true\n+++\n", PATH)
    assert frontmatter.draft is True
    assert frontmatter.title is None
    assert frontmatter.date is None


def test_invalid_toml_reports_file_line():
    with pytest.raises(FrontMatterError) as excinfo:
        parse_frontmatter('+++\ntitle = "x"\ndate = = 1\n+++\n', PATH)
    assert excinfo.value.line == 3
    assert excinfo.value.kind == "FrontMatterError"


@pytest.mark.parametrize(
    "line",
    [
        'draft = "no"',
        "title = 3",
        "taxonomies = 1",
        "[taxonomies]\ntags = [1, 2]",
        "[extra]\ntoc = 1",
        "[extra]\nkeywords = []",
    ],
)
def test_wrongly_typed_fields(line):
    text = f'+++\ntitle = "x"\ndate = 2024-01-01\n{line}\n+++\n'
    if line.startswith("title"):
        text = f"+++\ndate = 2024-01-01\n{line}\n+++\n"
    with pytest.raises(FrontMatterError):
        parse_frontmatter(text, PATH)
