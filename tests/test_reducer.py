# tests/test_reducer.py
import re

import pytest
from bs4 import BeautifulSoup

from cleaner.dom import HtmlParserDocumentAdapter
from cleaner.reducer import clean_html_for_llm, clean_html_minimal, text_length
from cleaner.tags import DEFAULT_ALLOWED_TAGS, RECIPE_MINIMAL_TAGS
from models import CleanOptions, STAT_COUNTERS


# --- Helpers ---

def normalize_for_assert(html: str) -> str:
    """Visible text of an output fragment: <br> as space, tags dropped, whitespace collapsed."""
    html = re.sub(r"<br\s*/?>", "\n", html, flags=re.IGNORECASE)
    html = re.sub(r"<[^>]+>", " ", html)
    html = re.sub(r"[\u200b\u200c\u200d]", "", html)
    return re.sub(r"\s+", " ", html).strip()


def has_tag(html: str, tag: str) -> bool:
    return BeautifulSoup(html, "html.parser").find(tag) is not None


def get_href(html: str):
    m = re.search(r'<a[^>]*href="([^"]+)"[^>]*>', html, re.IGNORECASE)
    return m.group(1) if m else None


def wrap_in_html(body: str) -> str:
    return f"<!doctype html><html><head></head><body>{body}</body></html>"


# --- Basic reduction ---

def test_body_is_kept_and_simple_content_survives():
    """The body itself is never unwrapped; its content is returned as a fragment."""
    result = clean_html_for_llm("<html><body><p>Hello</p></body></html>")
    assert result.text_length > 0
    assert result.output == "<p>Hello</p>"


def test_strips_comments():
    result = clean_html_for_llm("<html><body><p><!-- I am a comment -->Hello</p></body></html>")
    assert result.output == "<p>Hello</p>"
    assert result.stats["removedComments"] == 1


def test_strips_all_attributes_except_href():
    html = wrap_in_html("""
        <div id="wrap" class="c">
            <p style="color:red">Hello <a href="https://example.com/a.html" onclick="x()" target="_blank">world</a></p>
            <p><span class="nutrient-name nutrient-name--has-postfix">Total Fat</span></p>
        </div>""")
    output = clean_html_for_llm(html).output

    assert has_tag(output, "p")
    assert has_tag(output, "a")
    assert get_href(output) == "https://example.com/a.html"
    assert "onclick=" not in output
    assert "style=" not in output
    assert not re.search(r"class=|id=|target=", output)


def test_unsafe_links_are_unwrapped_and_text_remains():
    output = clean_html_for_llm(wrap_in_html('<p>Click <a href="javascript:alert(1)">here</a> now.</p>')).output
    assert not has_tag(output, "a")
    assert normalize_for_assert(output) == "Click here now."


def test_relative_links_are_preserved():
    output = clean_html_for_llm(wrap_in_html('<p>See <a href="/path?q=1#frag">link</a></p>')).output
    assert get_href(output) == "/path?q=1#frag"


def test_unwraps_non_whitelisted_wrappers():
    output = clean_html_for_llm(wrap_in_html("<div><div><p>Some text</p></div></div>")).output
    assert has_tag(output, "p")
    assert "<div" not in output
    assert normalize_for_assert(output) == "Some text"


def test_removes_empty_elements():
    """Whitespace-only headings, empty paragraphs and empty list items are pruned."""
    html = wrap_in_html("""
        <section>
            <h2> </h2>
            <p></p>
            <ul><li> </li><li>Item</li></ul>
        </section>""")
    output = clean_html_for_llm(html).output
    assert output.count("<li>") == 1
    assert normalize_for_assert(output) == "Item"


def test_collapses_whitespace_and_marks_breaks_with_br():
    output = clean_html_for_llm(wrap_in_html("<p>Line   one</p>\n<p>\n\nLine\t\n two </p>")).output
    assert normalize_for_assert(output) == "Line one Line two"
    assert "<br>" in output


def test_unwraps_span_and_mark():
    output = clean_html_for_llm(wrap_in_html("<p>Start <span data-x>mid</span> <mark>end</mark></p>")).output
    assert "<span" not in output
    assert "<mark" not in output
    assert normalize_for_assert(output) == "Start mid end"


def test_list_structure_is_preserved():
    html = wrap_in_html("""
        <div class="recipe">
            <h2>Ingredients</h2>
            <ul class="x"><li>1 cup flour</li><li><strong>2</strong> eggs</li></ul>
            <h2>Instructions</h2>
            <ol><li>Mix</li><li>Bake</li></ol>
        </div>""")
    output = clean_html_for_llm(html).output
    assert output.count("<h2>") == 2
    assert has_tag(output, "ul")
    assert has_tag(output, "ol")
    assert output.count("<li>") == 4
    assert "Ingredients 1 cup flour 2 eggs Instructions Mix Bake" in normalize_for_assert(output)
    # each list item starts on its own line
    assert "\n<li>Mix</li>" in output


def test_br_is_preserved_as_explicit_break():
    output = clean_html_for_llm(wrap_in_html("<p>Line 1<br>Line 2</p>")).output
    assert "<br>" in output
    assert normalize_for_assert(output) == "Line 1 Line 2"


def test_deeply_nested_wrappers():
    html = wrap_in_html("<div><div><section><article><p>Keep me</p></article></section></div></div>")
    output = clean_html_for_llm(html).output
    assert has_tag(output, "p")
    assert not re.search(r"<div|<section|<article", output)
    assert normalize_for_assert(output) == "Keep me"


# --- Tables and media ---

TABLE_HTML = wrap_in_html(
    "<table><thead><tr><th>Nutrient</th><th>Value</th></tr></thead>"
    "<tbody><tr><td>Calories</td><td>100</td></tr></tbody></table>"
)


def test_tables_are_dropped_by_default():
    output = clean_html_for_llm(TABLE_HTML).output
    assert not re.search(r"<table|<thead|<tbody|<tr|<th|<td", output, re.IGNORECASE)
    assert normalize_for_assert(output) == "Nutrient Value Calories 100"


def test_tables_are_kept_with_keep_tables():
    output = clean_html_for_llm(TABLE_HTML, CleanOptions(keep_tables=True)).output
    assert "<table" in output
    assert "<td" in output


def test_media_dropped_by_default():
    html = wrap_in_html('<div><p>Intro</p><img src="img.jpg" alt="x"></div>')
    assert "<img" not in clean_html_for_llm(html).output


def test_img_not_allowed_disappears_even_without_drop_media():
    html = wrap_in_html('<div><p>Intro</p><img src="img.jpg" alt="x"></div>')
    assert "<img" not in clean_html_for_llm(html, CleanOptions(drop_media=False)).output


def test_allowed_img_keeps_sanitized_src_only():
    html = wrap_in_html('<div><p>Intro</p><img src="img.jpg" alt="x"></div>')
    options = CleanOptions(allowed_tags=DEFAULT_ALLOWED_TAGS | {"img"}, drop_media=False)
    assert clean_html_for_llm(html, options).output == '<p>Intro</p><img src="/img.jpg">'


def test_allowed_img_without_src_is_removed():
    options = CleanOptions(allowed_tags=DEFAULT_ALLOWED_TAGS | {"img"}, drop_media=False)
    output = clean_html_for_llm('<img alt="x">', options).output
    assert not has_tag(output, "img")


# --- Stats and text length ---

def test_text_length_approximates_visible_text():
    result = clean_html_for_llm(wrap_in_html("<h1>Title</h1><p>Alpha <strong>beta</strong> gamma.</p>"))
    text = normalize_for_assert(result.output)
    assert abs(result.text_length - len(text)) <= result.text_length * 0.1


def test_text_length_ignores_tags_and_zero_width_chars():
    assert text_length("<p>a\u200b\u200b b</p>") == 3
    assert text_length("") == 0


def test_stats_reflect_removals_and_unwraps():
    html = wrap_in_html("""
        <div class="wrap">

            <script>var x=1</script>
            <style>.x{}</style>
            <p id="p">Hello</p>
        </div>""")
    result = clean_html_for_llm(html)
    assert result.stats["removedNodes"] >= 2
    assert result.stats["unwrappedNodes"] >= 1
    assert result.stats["removedAttrs"] >= 1
    assert normalize_for_assert(result.output) == "Hello"


def test_stats_always_carry_every_counter():
    result = clean_html_for_llm("")
    assert set(result.stats) == set(STAT_COUNTERS)
    assert result.output == ""
    assert result.text_length == 0


def test_stripped_links_are_counted():
    result = clean_html_for_llm(wrap_in_html('<p><a href="mailto:a@b.c">mail</a> <a>bare</a></p>'))
    assert result.stats["strippedLinks"] == 2
    assert normalize_for_assert(result.output) == "mail bare"


def test_noise_regions_are_removed():
    html = wrap_in_html(
        "<header>Site</header><nav>Menu</nav><p>Body</p>"
        '<div aria-hidden="true">hidden</div><footer>Foot</footer>'
    )
    assert clean_html_for_llm(html).output == "<p>Body</p>"


# --- Properties ---

CLOSURE_INPUTS = [
    wrap_in_html('<div><span>a</span><custom-el>b</custom-el><p>c <a href="/x">x</a></p></div>'),
    TABLE_HTML,
    wrap_in_html('<figure><img src="a.png"><figcaption>Cap</figcaption></figure><dl><dt>t</dt><dd>d</dd></dl>'),
    "<p>fragment <em>only</em></p>",
]


@pytest.mark.parametrize("html", CLOSURE_INPUTS)
@pytest.mark.parametrize(
    "options",
    [
        CleanOptions(),
        CleanOptions(keep_tables=True),
        CleanOptions(allowed_tags=RECIPE_MINIMAL_TAGS),
        CleanOptions(allowed_tags=frozenset({"p"}), drop_media=False),
    ],
)
def test_output_only_contains_allowed_tags(html, options):
    """No tag outside the effective whitelist survives in HTML output."""
    output = clean_html_for_llm(html, options).output
    allowed = options.effective_allowed_tags()
    names = {tag.name for tag in BeautifulSoup(output, "html.parser").find_all(True)}
    assert names <= allowed


@pytest.mark.parametrize("options", [CleanOptions(), CleanOptions(strict_urls=True)])
def test_javascript_links_never_survive(options):
    output = clean_html_for_llm('<p><a href="javascript:alert(1)">text</a></p>', options).output
    assert "<a" not in output
    assert "text" in output


def test_second_pass_keeps_sanitized_links():
    """Reducing the output again removes no attributes and strips no links."""
    html = wrap_in_html(
        '<div class="x"><p>See <a href="/a?b=1" rel="nofollow">one</a> and '
        '<a href="https://example.com/two">two</a></p><ul><li>Item</li></ul></div>'
    )
    first = clean_html_for_llm(html)
    second = clean_html_for_llm(first.output)

    assert second.stats["removedAttrs"] == 0
    assert second.stats["strippedLinks"] == 0
    assert re.findall(r'href="([^"]+)"', second.output) == ["/a?b=1", "https://example.com/two"]


def test_options_are_not_mutated():
    caller_tags = {"p", "a"}
    options = CleanOptions(allowed_tags=caller_tags, keep_tables=True)
    clean_html_for_llm(TABLE_HTML, options)

    assert caller_tags == {"p", "a"}
    assert "table" not in options.allowed_tags
    assert "table" not in DEFAULT_ALLOWED_TAGS
    assert "table" not in CleanOptions().effective_allowed_tags()


def test_node_budget_leaves_remaining_nodes_untouched():
    result = clean_html_for_llm(
        wrap_in_html('<div class="x"><p>Hi</p></div>'),
        CleanOptions(max_depth=1),
    )
    assert "<div" in result.output
    assert "Hi" in result.output
    assert result.stats["unwrappedNodes"] == 0


def test_consent_ui_is_removed_by_default():
    html = wrap_in_html(
        '<div id="onetrust-consent-sdk"><div>We use cookies. <button>Accept</button></div></div>'
        '<div class="modal-backdrop"></div>'
        "<main><p>Some real content</p>\n<p>Some more real content.</p></main>"
    )
    result = clean_html_for_llm(html)
    assert result.output == "<p>Some real content</p><br><p>Some more real content.</p>"
    assert result.stats["removedNodes"] >= 2


def test_consent_heuristics_can_be_disabled():
    html = wrap_in_html('<div class="cookie-banner"><p>We use cookies</p></div><p>Article</p>')
    kept = clean_html_for_llm(html, CleanOptions(apply_consent_ui_heuristics=False)).output
    assert "cookies" in kept
    assert clean_html_for_llm(html).output == "<p>Article</p>"


def test_minimal_text_output_mode():
    html = wrap_in_html(
        "<h1>Title</h1><p>Intro</p>"
        "<ul><li>Item 1</li><li>Item 2<ul><li>Sub</li></ul></li></ul>"
        "<table><tr><th>Key</th><td>Value</td></tr></table>"
    )
    result = clean_html_for_llm(html, CleanOptions(output_minimal_text=True, keep_tables=True))
    assert result.output == "# Title\n\nIntro\n\n- Item 1\n- Item 2\n- Sub\n\nKey\tValue"
    assert result.text_length > 0


# --- Adapters and presets ---

def test_html_parser_adapter_handles_fragments_without_body():
    result = clean_html_for_llm(
        '<div class="a"><p>Fragment</p></div>',
        adapter=HtmlParserDocumentAdapter(),
    )
    assert result.output == "<p>Fragment</p>"


def test_clean_html_minimal_uses_recipe_preset():
    html = wrap_in_html("<h4>Small</h4><p><b>bold</b> <strong>strong</strong></p>")
    output = clean_html_minimal(html).output
    assert "<h4>" not in output
    assert "<b>" not in output
    assert "<strong>strong</strong>" in output


def test_camel_case_options_are_accepted():
    options = CleanOptions.model_validate({"keepTables": True, "allowedTags": "recipe-minimal"})
    assert options.keep_tables is True
    assert options.allowed_tags == RECIPE_MINIMAL_TAGS


# --- Option switches ---

def test_non_strict_urls_keep_mailto_links():
    html = wrap_in_html('<p><a href="mailto:a@b.c">Mail us</a></p>')

    strict = clean_html_for_llm(html)
    assert get_href(strict.output) is None
    assert strict.stats["strippedLinks"] == 1

    loose = clean_html_for_llm(html, CleanOptions(strict_urls=False))
    assert get_href(loose.output) == "mailto:a@b.c"
    assert loose.stats["strippedLinks"] == 0


@pytest.mark.parametrize("tag", ["video", "figure"])
def test_allowed_media_survives_only_when_media_is_kept(tag):
    html = wrap_in_html(f'<p>Intro</p><{tag} class="m">Trailer</{tag}>')
    allowed = DEFAULT_ALLOWED_TAGS | {tag}

    kept = clean_html_for_llm(html, CleanOptions(allowed_tags=allowed, drop_media=False))
    assert f"<{tag}>Trailer</{tag}>" in kept.output

    dropped = clean_html_for_llm(html, CleanOptions(allowed_tags=allowed, drop_media=True))
    assert not has_tag(dropped.output, tag)
    assert "Trailer" not in dropped.output
    assert dropped.stats["removedNodes"] >= 1


def test_comment_inside_unwrapped_wrapper_is_removed_and_counted():
    result = clean_html_for_llm(wrap_in_html("<div><!-- c --><p>x</p></div>"))
    assert result.output == "<p>x</p>"
    assert "<!--" not in result.output
    assert result.stats["removedComments"] == 1
    assert result.stats["unwrappedNodes"] == 1
