from pagecraft.parser import ResponseParser, normalize_fences, parse_response


def test_extracts_single_html_block():
    parsed = parse_response("Here is your page:\n```html\n<div>Hi</div>\n```\nDone.")
    assert parsed.html == "<div>Hi</div>"
    assert parsed.css == ""
    assert parsed.explanatory_text == "Here is your page:\n\nDone."
    assert parsed.anomalies == ()


def test_extracts_html_and_css_and_strips_both_from_text():
    raw = "Intro\n```html\n  <main>X</main>  \n```\nMiddle\n```css\n body { margin: 0; } \n```\nOutro"
    parsed = parse_response(raw)
    assert parsed.html == "<main>X</main>"
    assert parsed.css == "body { margin: 0; }"
    assert "<main>" not in parsed.explanatory_text
    assert "margin" not in parsed.explanatory_text
    assert parsed.explanatory_text == "Intro\n\nMiddle\n\nOutro"


def test_no_fences_returns_whole_trimmed_text():
    parsed = parse_response("  Just a plain answer.  \n")
    assert parsed.html == ""
    assert parsed.css == ""
    assert parsed.explanatory_text == "Just a plain answer."
    assert not parsed.has_code


def test_reparsing_explanatory_text_is_stable():
    first = parse_response("Text\n```html\n<p>a</p>\n```\nmore")
    second = parse_response(first.explanatory_text)
    assert second.html == ""
    assert second.css == ""
    assert second.explanatory_text == first.explanatory_text


def test_unterminated_css_fence_does_not_raise():
    parsed = parse_response("Styles follow:\n```css\nbody { color: red; }")
    assert parsed.css == ""
    assert parsed.explanatory_text.startswith("Styles follow:")
    assert "body { color: red; }" in parsed.explanatory_text
    assert [a.kind for a in parsed.anomalies] == ["unterminated_fence"]
    assert parsed.anomalies[0].label == "css"


def test_unterminated_fence_after_complete_block():
    parsed = parse_response("A\n```html\n<p>x</p>\n```\nB\n```css\nbody {}")
    assert parsed.html == "<p>x</p>"
    assert parsed.css == ""
    assert parsed.explanatory_text == "A\n\nB\n```css\nbody {}"


def test_first_block_of_each_label_wins():
    raw = "```html\n<p>one</p>\n```\n```html\n<p>two</p>\n```\n```css\na{}\n```\n```css\nb{}\n```"
    parsed = parse_response(raw)
    assert parsed.html == "<p>one</p>"
    assert parsed.css == "a{}"
    assert parsed.explanatory_text == ""
    assert [a.kind for a in parsed.anomalies] == ["duplicate_block", "duplicate_block"]


def test_blocks_with_other_labels_are_stripped_but_not_extracted():
    raw = "Run this:\n```js\nalert(1)\n```\nand\n```\nplain\n```\nend"
    parsed = parse_response(raw)
    assert parsed.html == ""
    assert parsed.css == ""
    assert parsed.explanatory_text == "Run this:\n\nand\n\nend"


def test_missing_newline_after_opening_fence_is_fixed():
    parsed = parse_response("```html<section>ok</section>```")
    assert parsed.html == "<section>ok</section>"


def test_normalize_only_inserts_missing_newlines():
    assert normalize_fences("```html\n<p></p>\n```") == "```html\n<p></p>\n```"
    assert normalize_fences("```css body{}```") == "```css\n body{}```"
    assert normalize_fences("```js x```") == "```js x```"


def test_empty_input():
    parsed = ResponseParser().parse("")
    assert (parsed.html, parsed.css, parsed.explanatory_text) == ("", "", "")


def test_many_stray_backticks_are_handled_linearly():
    raw = "```" * 5000 + "tail"
    parsed = parse_response(raw)
    assert parsed.html == ""
