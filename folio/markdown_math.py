"""Math span support for the Markdown renderer.

Registers a mistune plugin that recognises ``$...$`` inline math,
``$$...$$`` display math inside a paragraph, and blocks whose ``$$``
fences each sit on a line of their own. Math is not typeset here: each
span is escaped and wrapped in a marker element with the TeX delimiters
a client-side typesetter (KaTeX auto-render, MathJax) looks for.
"""

from __future__ import annotations

from .html_utils import escape_html

BLOCK_MATH_PATTERN = r"^ {0,3}\$\$[ \t]*\n(?P<math_block_text>[\s\S]+?)\n {0,3}\$\$[ \t]*$"
INLINE_MATH_PATTERN = (
    r"\$\$(?P<math_display_text>[^$]+?)\$\$"
    r"|\$(?!\s)(?P<math_inline_text>[^$\n]+?)(?<!\s)\$"
)


def parse_block_math(block, m, state) -> int:
    text = m.group("math_block_text").strip()
    state.append_token({"type": "block_math", "raw": text})
    return m.end() + 1


def parse_inline_math(inline, m, state) -> int:
    display = m.group("math_display_text")
    if display is not None:
        state.append_token({"type": "display_math", "raw": display.strip()})
    else:
        state.append_token({"type": "inline_math", "raw": m.group("math_inline_text")})
    return m.end()


def render_block_math(renderer, text: str) -> str:
    return f'<p class="math-block">{render_display_math(renderer, text)}</p>\n'


def render_display_math(renderer, text: str) -> str:
    return f'<span class="math math-display">\\[{escape_html(text)}\\]</span>'


def render_inline_math(renderer, text: str) -> str:
    return f'<span class="math math-inline">\\({escape_html(text)}\\)</span>'


def math(md) -> None:
    """mistune plugin entry point.

    Args:
        md: The ``mistune.Markdown`` instance being configured.
    """
    md.block.register("block_math", BLOCK_MATH_PATTERN, parse_block_math, before="list")
    md.inline.register("inline_math", INLINE_MATH_PATTERN, parse_inline_math, before="link")
    if md.renderer and md.renderer.NAME == "html":
        md.renderer.register("block_math", render_block_math)
        md.renderer.register("display_math", render_display_math)
        md.renderer.register("inline_math", render_inline_math)
