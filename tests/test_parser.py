from parser import parse_html


def test_links_and_images_are_absolute_in_document_order(make_page):
    page = make_page("http://ex.test/dir/page.html",
                     '<a href="b.html">b</a><a href="/c">c</a><a href="https://other.test/">o</a>'
                     '<img src="img/logo.png"><a>no href</a>')
    assert page.links() == ["http://ex.test/dir/b.html", "http://ex.test/c", "https://other.test/"]
    assert page.images() == ["http://ex.test/dir/img/logo.png"]


def test_base_href_wins_over_location():
    page = parse_html('<html><head><base href="http://cdn.ex.test/root/"></head>'
                      '<body><a href="x">x</a></body></html>', "http://ex.test/a/b")
    assert page.links() == ["http://cdn.ex.test/root/x"]


def test_non_http_schemes_pass_through(make_page):
    page = make_page("http://ex.test/", '<a href="mailto:a@ex.test">m</a><a href="tel:+15551234">t</a>')
    assert page.links() == ["mailto:a@ex.test", "tel:+15551234"]


def test_own_texts_exclude_children_scripts_and_comments(make_page):
    page = make_page("http://ex.test/",
                     "<p>Take <b>CSCI 101</b>   this\n  fall<!-- MATH 999 --></p>"
                     "<script>var x = 'ABCD 123';</script><style>p{}</style>")
    texts = list(page.own_texts())
    assert "Take this fall" in texts
    assert "CSCI 101" in texts
    assert not any("ABCD" in t or "MATH" in t for t in texts)


def test_empty_document_has_nothing():
    page = parse_html("", "http://ex.test/")
    assert page.links() == []
    assert page.images() == []
    assert list(page.own_texts()) == []


def test_own_text_keeps_a_space_at_line_breaks(make_page):
    page = make_page("http://ex.test/", "<p>123 Main St<br>Springfield, IL 62704</p>")
    assert list(page.own_texts()) == ["123 Main St Springfield, IL 62704"]
