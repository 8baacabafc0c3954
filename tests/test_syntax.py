"""Tests for positional template validation."""

import pytest

from muxfmt.errors import TemplateSyntaxError
from muxfmt.syntax import TagKind, check_template, position_of, scan_tags, tokenize


def syntax_error(template):
    with pytest.raises(TemplateSyntaxError) as excinfo:
        check_template(template)
    return excinfo.value


class TestPosition:
    def test_first_line(self):
        assert position_of("abc", 0) == (1, 1)
        assert position_of("abc", 2) == (1, 3)

    def test_later_line(self):
        assert position_of("ab\ncd\nef", 4) == (2, 2)
        assert position_of("ab\ncd\nef", 6) == (3, 1)


class TestValidTemplates:
    @pytest.mark.parametrize(
        "template",
        [
            "",
            "plain text",
            "{{session.name}}",
            "{{ session.name }}",
            "{{{session.name}}}",
            "{{add tab.position 1}}",
            "{{join tags sep=\"-\"}}",
            "{{style session.name \"bold, bright_red\"}}",
            "{{mul (add 1 2) 3}}",
            "{{#if session.is_current_session}}*{{else}} {{/if}}",
            "{{#each items}}{{this}}{{/each}}",
            "{{^active}}inactive{{/active}}",
            "{{#unless a}}x{{else}}y{{/unless}}",
            "{{! a comment with }} inside? no}}",
            "{{!-- a {{comment}} --}}",
            "{{~session.name~}}",
            "{{../parent}} {{@index}} {{.}}",
            "line one\n{{session.name}}\nline three",
        ],
    )
    def test_accepted(self, template):
        check_template(template)

    def test_tag_kinds(self):
        tags = scan_tags("{{a}}{{{b}}}{{#c}}{{else}}{{/c}}{{>p}}{{!x}}{{^d}}{{^}}{{/d}}")
        assert [t.kind for t in tags] == [
            TagKind.VARIABLE,
            TagKind.RAW,
            TagKind.SECTION,
            TagKind.ELSE,
            TagKind.CLOSE,
            TagKind.PARTIAL,
            TagKind.COMMENT,
            TagKind.INVERTED,
            TagKind.ELSE,
            TagKind.CLOSE,
        ]
        assert tags[2].name == "c"

    def test_tokenize_offsets_are_template_offsets(self):
        template = "xx{{add 1 two}}"
        tokens = tokenize(template, 4, len(template) - 2)
        assert [(t.kind, t.text, t.offset) for t in tokens] == [
            ("path", "add", 4),
            ("number", "1", 8),
            ("path", "two", 10),
        ]


class TestErrors:
    def test_unterminated_tag_points_at_open_braces(self):
        err = syntax_error("abc {{session.name")
        assert err.position == (1, 5)
        assert "unterminated" in err.message

    def test_unclosed_block_points_at_block_start(self):
        err = syntax_error("ab {{#if session.name}}yes")
        assert err.position == (1, 4)
        assert err.message == "unclosed block 'if'"

    def test_unclosed_block_on_second_line(self):
        err = syntax_error("first\n  {{#each x}}")
        assert err.position == (2, 3)

    def test_mismatched_close_points_at_closing_tag(self):
        err = syntax_error("{{#if a}}{{#each b}}{{/if}}")
        # {{/if}} closes the most recent block, which is 'each'
        assert "does not match" in err.message
        assert err.position == (1, 21)

    def test_unexpected_close(self):
        err = syntax_error("x {{/if}}")
        assert err.position == (1, 3)
        assert "unexpected closing tag" in err.message

    def test_else_outside_block(self):
        assert syntax_error("{{else}}").position == (1, 1)

    def test_empty_tag(self):
        err = syntax_error("a{{ }}")
        assert err.position == (1, 2)
        assert err.message == "empty tag"

    def test_missing_block_name(self):
        assert "missing name" in syntax_error("{{#}}").message

    def test_unterminated_string(self):
        err = syntax_error('{{style x "bold}}')
        assert err.position == (1, 11)
        assert err.message == "unterminated string literal"

    def test_unexpected_character(self):
        err = syntax_error("{{session.name | upper}}")
        assert err.position == (1, 16)
        assert "unexpected character '|'" in err.message

    def test_unclosed_subexpression(self):
        err = syntax_error("{{add (mul 1 2 3}}")
        assert err.position == (1, 7)

    def test_stray_close_paren(self):
        assert syntax_error("{{add 1 2)}}").position == (1, 10)

    def test_empty_subexpression(self):
        assert syntax_error("{{add () 1}}").message == "empty subexpression"

    def test_positional_after_hash(self):
        err = syntax_error('{{join a sep="-" b}}')
        assert err.message == "positional argument after hash argument"
        assert err.position == (1, 18)

    def test_hash_without_value(self):
        assert "missing value" in syntax_error("{{join a sep=}}").message

    def test_unterminated_comment(self):
        assert syntax_error("x{{!-- never closed").position == (1, 2)

    def test_chained_else_is_rejected(self):
        err = syntax_error("{{#if a}}x{{else if b}}y{{/if}}")
        assert err.position == (1, 11)
        assert "chained 'else'" in err.message

    def test_dotted_block_name(self):
        err = syntax_error("{{^session.off}}inv{{/session.off}}")
        assert err.position == (1, 4)
        assert "block name" in err.message

    def test_space_in_closing_tag(self):
        err = syntax_error("{{#if a}}x{{/ if}}")
        assert err.position == (1, 11)
        assert "malformed closing tag" in err.message

    def test_block_helper_arity(self):
        err = syntax_error("{{#if}}x{{/if}}")
        assert err.position == (1, 1)
        assert err.message == "'if' expects 1 argument(s), got 0"
        assert syntax_error("x\n{{#unless a b}}{{/unless}}").position == (2, 1)

    def test_block_helper_used_inline(self):
        err = syntax_error("{{if x}}")
        assert err.position == (1, 1)
        assert "block helper" in err.message

    def test_escaped_open_braces(self):
        err = syntax_error("ab\\{{session.name}}")
        assert err.position == (1, 3)
        assert "escaped" in err.message

    def test_single_letter_hash_key(self):
        err = syntax_error('{{join tags s="-"}}')
        assert err.position == (1, 14)
        assert "unexpected character '='" in err.message
