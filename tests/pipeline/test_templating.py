"""Templating tests for the example pages and index."""

from dataclasses import dataclass

import pytest

from sitebuild.config import LAYOUT_HEADER
from sitebuild.exceptions import TemplateRenderError
from sitebuild.pipeline.templating import (
    EXAMPLE_PAGE_TEMPLATE,
    extract_placeholders_from_template,
    render,
    render_template,
)


@dataclass
class Entry:
    title: str
    url: str


def test_extract_placeholders_from_example_page_template():
    """Test Extract placeholders from the example page template."""
    out = extract_placeholders_from_template(EXAMPLE_PAGE_TEMPLATE)
    assert out == ["code", "header", "title", "type", "url"]


def test_render_example_page_matches_expected_text():
    page = render(
        "example_page",
        {
            "header": LAYOUT_HEADER,
            "title": "Basic usage",
            "url": "basic_usage.js",
            "type": "js",
            "code": "console.log(1);\n",
        },
    )
    assert page == (
        "---\nlayout: default\n---\n\n"
        "# Basic usage\n\n"
        "Raw file: [basic_usage.js](basic_usage.js)\n\n"
        "```js\n"
        "console.log(1);\n"
        "```\n"
    )


def test_each_renders_mappings_and_dataclasses_in_order():
    template = "{{#each xs}}[{{title}}|{{url}}]{{/each}}"
    out = render_template(template, {"xs": [Entry("A", "a"), {"title": "B", "url": "b"}]})
    assert out == "[A|a][B|b]"


def test_each_over_empty_list_renders_nothing():
    assert render_template("x{{#each xs}}- {{v}}\n{{/each}}y", {"xs": []}) == "xy"


def test_inserted_values_are_not_reinterpreted():
    """Code containing placeholder syntax is emitted verbatim."""
    out = render_template("{{code}}", {"code": "const s = '{{title}}';"})
    assert out == "const s = '{{title}}';"


def test_missing_field_raises():
    with pytest.raises(TemplateRenderError) as excinfo:
        render_template("{{title}}", {})
    assert excinfo.value.code == "TEMPLATE_RENDER_ERROR"
    assert excinfo.value.context["field"] == "title"


def test_missing_field_inside_each_raises():
    with pytest.raises(TemplateRenderError):
        render_template("{{#each xs}}{{url}}{{/each}}", {"xs": [{"title": "t"}]})


def test_each_target_must_be_a_list():
    with pytest.raises(TemplateRenderError):
        render_template("{{#each xs}}{{v}}{{/each}}", {"xs": "abc"})


def test_each_elements_must_be_mappings():
    with pytest.raises(TemplateRenderError):
        render_template("{{#each xs}}{{v}}{{/each}}", {"xs": [1]})


def test_unknown_template_name_raises():
    with pytest.raises(TemplateRenderError) as excinfo:
        render("nope", {})
    assert "example_page" in excinfo.value.context["available"]


def test_render_reports_every_missing_field():
    with pytest.raises(TemplateRenderError) as excinfo:
        render("example_page", {"header": ""})
    assert excinfo.value.context["missing"] == ["code", "title", "type", "url"]
    assert "code, title, type, url" in excinfo.value.message
