import pytest

from rating_sorter.document import InvalidPatternError, SoupDocument


def test_invalid_pattern_raises_domain_error():
    document = SoupDocument.from_html("<body><p>x</p></body>")
    with pytest.raises(InvalidPatternError):
        document.select(document.soup, "div[")
    with pytest.raises(InvalidPatternError):
        document.matches(document.soup.p, "div[")


def test_move_to_end_keeps_other_children():
    document = SoupDocument.from_html(
        '<body><ul><li id="a">a</li> <li id="b">b</li> <span>x</span></ul></body>'
    )
    ul = document.soup.ul
    before = {id(node) for node in ul.contents}
    count = len(ul.contents)
    a, b = ul.select("li")
    document.move_to_end(ul, [b, a])
    assert [li["id"] for li in ul.select("li")] == ["b", "a"]
    assert len(ul.contents) == count
    assert {id(node) for node in ul.contents} == before
    assert ul.contents[-2] is b


def test_subscription_receives_batched_nodes(scheduler):
    document = SoupDocument.from_html("<body><div id='feed'></div></body>", scheduler)
    received = []
    document.observe(document.root, received.append)

    feed = document.soup.select_one("#feed")
    document.insert_html(feed, "<p>1</p>")
    document.insert_html(feed, "<p>2</p>")
    assert received == []

    scheduler.advance(0)
    assert len(received) == 1
    assert [node.get_text() for node in received[0]] == ["1", "2"]


def test_subscription_filters_by_target_and_disconnects():
    document = SoupDocument.from_html(
        "<body><div id='watched'></div><div id='other'></div></body>"
    )
    received = []
    subscription = document.observe(document.soup.select_one("#watched"), received.append)

    document.insert_html(document.soup.select_one("#other"), "<p>no</p>")
    assert received == []
    document.insert_html(document.soup.select_one("#watched"), "<p>yes</p>")
    assert len(received) == 1

    subscription.disconnect()
    document.insert_html(document.soup.select_one("#watched"), "<p>late</p>")
    assert len(received) == 1


def test_scroll_offsets_default_to_zero():
    document = SoupDocument.from_html("<body><div></div></body>")
    node = document.soup.div
    assert document.scroll_left(node) == 0
    document.set_scroll_left(node, 240)
    assert document.scroll_left(node) == 240


def test_root_absent_without_body():
    document = SoupDocument.from_html("<div>fragment</div>")
    assert document.root is None
