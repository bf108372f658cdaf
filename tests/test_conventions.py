#!/usr/bin/env python3
"""Tests for compute function naming conventions."""

import sys
sys.path.insert(0, "src")

import pytest

from sclerotium.conventions import (
    CAMEL_CASE,
    SNAKE_CASE,
    DEFAULT_CONVENTIONS,
    NamingConvention,
    list_compute_functions,
    match,
    member_names,
    snake,
)


# ============================================================================
# Test Types
# ============================================================================

class Post:
    title = "untitled"
    computeStaticAttribute = "not callable"

    def computeTextExcerptAttribute(self, text):
        return text[:5]

    def computeAttribute(self, text):
        return text

    def compute_slug_attribute(self, title):
        return title.lower()

    def computeHtmlAttribute(self, body):
        return f"<p>{body}</p>"

    def render(self):
        return ""


class FeaturedPost(Post):
    def computeBadgeAttribute(self, title):
        return "*"

    def computeTextExcerptAttribute(self, text):
        return text[:3]


class Enumerated:
    @classmethod
    def list_compute_functions(cls):
        return [
            ("computeSecondAttribute", lambda y: y),
            ("helper", lambda: None),
            ("computeFirstAttribute", lambda x: x),
        ]


# ============================================================================
# Name Matching
# ============================================================================

@pytest.mark.parametrize("name,field", [
    ("computeTextExcerptAttribute", "text_excerpt"),
    ("computeHtmlAttribute", "html"),
    ("computeExcerptAttribute", "excerpt"),
    ("computeAAttribute", "a"),
    ("computeHTMLBodyAttribute", "h_t_m_l_body"),
])
def test_camel_case_output_field(name, field):
    """Output field is the snake-cased token between prefix and suffix."""
    assert CAMEL_CASE.matches(name)
    assert CAMEL_CASE.output_field(name) == field


def test_snake_case_output_field():
    assert SNAKE_CASE.matches("compute_text_excerpt_attribute")
    assert SNAKE_CASE.output_field("compute_text_excerpt_attribute") == "text_excerpt"


@pytest.mark.parametrize("name", [
    "computeAttribute",
    "compute_attribute",
    "compute__attribute",
    "computeExcerpt",
    "excerptAttribute",
    "recomputeExcerptAttribute",
])
def test_names_that_are_not_compute_functions(name):
    """An empty field token or a missing prefix/suffix never matches."""
    assert match(name, DEFAULT_CONVENTIONS) is None


def test_first_matching_convention_wins():
    other = NamingConvention(prefix="compute", suffix="attribute")
    assert match("compute_total_attribute", (other, SNAKE_CASE)) is other
    assert match("compute_total_attribute", (SNAKE_CASE, other)) is SNAKE_CASE


def test_custom_convention():
    derive = NamingConvention(prefix="derive_", suffix="")
    assert derive.matches("derive_total")
    assert not derive.matches("derive_")
    assert derive.output_field("derive_total") == "total"


def test_snake():
    assert snake("TextExcerpt") == "text_excerpt"
    assert snake("text_excerpt") == "text_excerpt"
    assert snake("Html") == "html"
    assert snake("word count") == "word_count"
    assert snake("TextExcerpt", delimiter="-") == "text-excerpt"


# ============================================================================
# Discovery
# ============================================================================

def test_lists_compute_functions_in_declaration_order():
    names = [name for name, _ in list_compute_functions(Post)]
    assert names == [
        "computeTextExcerptAttribute",
        "compute_slug_attribute",
        "computeHtmlAttribute",
    ]


def test_skips_non_callable_members():
    names = [name for name, _ in list_compute_functions(Post)]
    assert "computeStaticAttribute" not in names


def test_excludes_degenerate_compute_attribute():
    names = [name for name, _ in list_compute_functions(Post)]
    assert "computeAttribute" not in names


def test_subclass_keeps_base_order_and_overrides():
    """Inherited functions come first; overrides keep their original slot."""
    found = list_compute_functions(FeaturedPost)
    assert [name for name, _ in found] == [
        "computeTextExcerptAttribute",
        "compute_slug_attribute",
        "computeHtmlAttribute",
        "computeBadgeAttribute",
    ]
    assert found[0][1] is FeaturedPost.computeTextExcerptAttribute


def test_member_names_walks_mro_from_base():
    names = list(member_names(FeaturedPost))
    assert names.index("computeHtmlAttribute") < names.index("computeBadgeAttribute")
    assert len(names) == len(set(names))


def test_record_type_can_enumerate_its_own_functions():
    found = list_compute_functions(Enumerated)
    assert [name for name, _ in found] == ["computeSecondAttribute", "computeFirstAttribute"]


def test_discovery_respects_conventions():
    names = [name for name, _ in list_compute_functions(Post, (SNAKE_CASE,))]
    assert names == ["compute_slug_attribute"]
