from dataclasses import replace

from conftest import browse_page, card_html, carousel_item_html

from rating_sorter.cascade import PatternCascade, first_match
from rating_sorter.classifier import Classifier
from rating_sorter.config import DEFAULT_SELECTORS, ShapePatterns
from rating_sorter.document import InvalidPatternError, SoupDocument
from rating_sorter.models import ContainerKind


def make_classifier(html, selectors=DEFAULT_SELECTORS):
    document = SoupDocument.from_html(html)
    return document, Classifier(PatternCascade(document), selectors)


class TestFirstMatch:
    def test_first_truthy_result_wins(self):
        result = first_match([("a", lambda: []), ("b", lambda: [1]), ("c", lambda: [2])])
        assert result == ("b", [1])

    def test_invalid_pattern_is_skipped(self):
        def broken():
            raise InvalidPatternError("div[")

        assert first_match([("bad", broken), ("ok", lambda: [3])]) == ("ok", [3])

    def test_nothing_matches(self):
        assert first_match([("a", lambda: [])]) is None


class TestPatternCascade:
    def test_fallback_used_only_when_primary_is_empty(self):
        document = SoupDocument.from_html(
            "<body><b class='x'>1</b><i class='y'>2</i><i class='y'>3</i></body>"
        )
        cascade = PatternCascade(document)
        assert [n.get_text() for n in cascade.select(document.soup, (".x", ".y"))] == ["1"]
        assert [n.get_text() for n in cascade.select(document.soup, (".z", ".y"))] == ["2", "3"]
        assert cascade.select(document.soup, (".z",)) == []

    def test_contains_checks_self_and_descendants(self):
        document = SoupDocument.from_html("<body><div id='a'><span class='x'></span></div></body>")
        cascade = PatternCascade(document)
        outer = document.soup.select_one("#a")
        assert cascade.contains(outer, (".x",))
        assert cascade.contains(document.soup.select_one(".x"), (".x",))
        assert not cascade.contains(outer, (".nothing", "div["))


class TestFindContainers:
    def test_primary_patterns_win(self):
        html = browse_page([card_html("A", "4.1"), card_html("B", "4.2")])
        document, classifier = make_classifier(html)
        found = classifier.find_containers(document.soup)
        assert len(found.browse) == 1
        assert found.carousels == []
        assert found.unknown == []

    def test_fallback_buckets_by_card_shape(self):
        html = (
            "<body>"
            '<div class="carousel-scroller__track--NEWHASH">'
            + carousel_item_html("A", "4.0")
            + carousel_item_html("B", "4.5")
            + "</div>"
            '<div class="erc-cards-collection-v2">'
            + '<div class="browse-collection-card--zz">' + card_html("C", "3.9") + "</div>"
            + "</div>"
            "<ul><li>" + card_html("D", "4.4") + "</li><li>" + card_html("E", "4.7") + "</li></ul>"
            "<ul><li>plain</li></ul>"
            "</body>"
        )
        document, classifier = make_classifier(html)
        found = classifier.find_containers(document.soup)
        assert [n["class"][0] for n in found.carousels] == ["carousel-scroller__track--NEWHASH"]
        assert [n["class"][0] for n in found.browse] == ["erc-cards-collection-v2"]
        assert len(found.unknown) == 1
        assert found.unknown[0].node.name == "ul"
        assert found.unknown[0].inner_card_count == 2

    def test_invalid_fallback_does_not_abort(self):
        selectors = replace(
            DEFAULT_SELECTORS,
            carousel_container=ShapePatterns(".missing", ("div[",)),
            browse_container=ShapePatterns(".missing-too", ("ul",)),
        )
        html = "<body><ul>" + card_html("A", "4") + card_html("B", "5") + "</ul></body>"
        document, classifier = make_classifier(html, selectors)
        found = classifier.find_containers(document.soup)
        assert len(found.unknown) == 1

    def test_nothing_found(self):
        document, classifier = make_classifier("<body><p>empty</p></body>")
        assert len(classifier.find_containers(document.soup)) == 0


class TestClassifyUnknown:
    def test_carousel_wins_when_ambiguous(self):
        html = (
            "<body><section>"
            + carousel_item_html("A", "4")
            + '<div class="browse-collection-card--m2Rmp">' + card_html("B", "4") + "</div>"
            + "</section></body>"
        )
        document, classifier = make_classifier(html)
        result = classifier.classify_unknown(document.soup.section)
        assert result.kind is ContainerKind.CAROUSEL
        assert len(result.cards) == 1

    def test_browse_shape(self):
        html = (
            "<body><section>"
            + '<div class="browse-collection-card--m2Rmp">' + card_html("B", "4") + "</div>"
            + "</section></body>"
        )
        document, classifier = make_classifier(html)
        assert classifier.classify_unknown(document.soup.section).kind is ContainerKind.BROWSE

    def test_generic_uses_card_fallbacks(self):
        html = (
            "<body><section>"
            + card_html("A", "4", card_class="browse-card--otherHash")
            + card_html("B", "5", card_class="browse-card--otherHash")
            + "</section></body>"
        )
        document, classifier = make_classifier(html)
        result = classifier.classify_unknown(document.soup.section)
        assert result.kind is ContainerKind.GENERIC
        assert len(result.cards) == 2

    def test_generic_without_cards(self):
        document, classifier = make_classifier("<body><section><p>x</p></section></body>")
        result = classifier.classify_unknown(document.soup.section)
        assert result.kind is ContainerKind.GENERIC
        assert result.cards == []
