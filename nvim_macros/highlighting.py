"""
Syntax highlighting for macro key notation.

Colours the printable form of a macro when it is listed:

  Special keys  (<Esc>, <CR>, <F5>)   cyan
  Ctrl chords   (<C-r>, <C-?>)        yellow
  Raw bytes     (<0x80>)              red
  Counts        (3, 12)               purple
  <lt>                                grey

Uses Pygments for lexing and terminal rendering.
"""

from pygments import highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexer import RegexLexer
from pygments.style import Style as PygmentsStyle
from pygments.token import (
    Token,
    Keyword,
    Name,
    Number,
    Error,
    Punctuation,
)


# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------

class KeyNotationLexer(RegexLexer):
    """
    Lexer for Vim key notation as produced by keytrans().

    Everything outside <...> groups is typed text and stays plain,
    except digit runs, which are usually counts.
    """

    name = "KeyNotation"
    aliases = ["keynotation"]

    tokens = {
        "root": [
            # ── escaped '<' ──
            (r"<lt>", Punctuation),

            # ── raw bytes ──
            (r"<0x[0-9a-fA-F]{2}>", Error),

            # ── ctrl / meta chords ──
            (r"<[CcMmAaSsDd]-[^<>\s]{1,2}>", Name.Variable),

            # ── named keys ──
            (r"<[A-Za-z][A-Za-z0-9]*>", Keyword),

            # ── counts ──
            (r"\d+", Number.Integer),

            # ── catch-all ──
            (r"[^<\d]+", Token.Text),
            (r"<", Token.Text),
        ],
    }


# ---------------------------------------------------------------------------
# Colour palette
# ---------------------------------------------------------------------------

class MacroStyle(PygmentsStyle):
    """Pygments colour theme for key notation."""

    default_style = ""
    styles = {
        Token.Text:      "",                # terminal default
        Punctuation:     "#888888",         # grey
        Error:           "#f92672",         # red    — raw bytes
        Name.Variable:   "#e6db74",         # yellow — chords
        Keyword:         "#66d9ef",         # cyan   — named keys
        Number.Integer:  "#ae81ff",         # purple
    }


def highlight_content(content: str) -> str:
    """Return *content* with ANSI colour codes for a 256-colour terminal."""
    return highlight(content, KeyNotationLexer(), Terminal256Formatter(style=MacroStyle)).rstrip("\n")
