import asyncio

from hypershot.services.extractor import extract_descriptors
from hypershot.services.rewriter import REWRITE_SCRIPT, rewrite_payload, rewrite_references

PAGE = """<html><head>
<link rel="stylesheet" href="https://cdn.x/site.css" integrity="sha384-abc" crossorigin="anonymous">
<script src="https://cdn.x/app.js"></script>
</head><body>
<img src="https://x/a.png" srcset="https://x/a@2x.png 2x">
</body></html>"""


def discover(page, settings):
    return asyncio.run(extract_descriptors(page, settings))


def fetched(descriptors):
    for i, d in enumerate(descriptors):
        d.mark_fetched(f"{i}.bin", f"assets/{i}.bin")
    return descriptors


def test_rewrites_successful_references(make_page, settings):
    page = make_page(PAGE)
    link, script, img = fetched(discover(page, settings))

    report = asyncio.run(rewrite_references(page, [link, script, img]))

    assert report.rewritten == [link, script, img]
    el = page.soup.find("link")
    assert el["href"] == "assets/0.bin"
    assert el["orig-href"] == "https://cdn.x/site.css"
    assert "integrity" not in el.attrs and "crossorigin" not in el.attrs
    el = page.soup.find("img")
    assert el["src"] == "assets/2.bin"
    assert el["orig-src"] == "https://x/a.png"
    assert "srcset" not in el.attrs


def test_failed_references_are_untouched(make_page, settings):
    page = make_page(PAGE)
    link, script, img = discover(page, settings)
    link.mark_fetched("0.css", "assets/0.css")
    script.mark_failed("Connection refused")
    img.mark_failed("404")

    report = asyncio.run(rewrite_references(page, [link, script, img]))

    assert report.rewritten == [link]
    el = page.soup.find("script")
    assert el.attrs == {"src": "https://cdn.x/app.js"}
    el = page.soup.find("img")
    assert el["src"] == "https://x/a.png" and el["srcset"] == "https://x/a@2x.png 2x"


def test_nothing_to_rewrite_skips_the_page(make_page, settings):
    page = make_page(PAGE)
    descriptors = discover(page, settings)
    for d in descriptors:
        d.mark_failed("offline")

    report = asyncio.run(rewrite_references(page, descriptors))

    assert report.rewritten == report.missed == []
    assert page.scripts == []


def test_second_pass_changes_nothing(make_page, settings):
    page = make_page(PAGE)
    descriptors = fetched(discover(page, settings))
    asyncio.run(rewrite_references(page, descriptors))
    first = str(page.soup)

    report = asyncio.run(rewrite_references(page, descriptors))

    assert report.rewritten == []
    assert report.unchanged == descriptors
    assert str(page.soup) == first


def test_element_gone_is_a_miss_and_keeps_local_fields(make_page, settings):
    page = make_page(PAGE)
    link, script, img = fetched(discover(page, settings))
    page.soup.find("img").decompose()

    report = asyncio.run(rewrite_references(page, [link, script, img]))

    assert report.missed == [img]
    assert report.rewritten == [link, script]
    assert img.local_relative_path == "assets/2.bin"
    assert img.fetch_error is None


def test_duplicate_values_each_rewrite_their_own_element(make_page, settings):
    page = make_page('<img src="https://x/a.png" class="one"><img src="https://x/a.png" class="two">')
    first, second = discover(page, settings)
    first.mark_fetched("a.png", "assets/a.png")
    second.mark_fetched("a.png", "assets/a.png")

    report = asyncio.run(rewrite_references(page, [first, second]))

    assert report.rewritten == [first, second]
    assert [img["src"] for img in page.soup.find_all("img")] == ["assets/a.png", "assets/a.png"]
    assert [img["orig-src"] for img in page.soup.find_all("img")] == ["https://x/a.png"] * 2


def test_falls_back_to_value_lookup_when_position_shifts(make_page, settings):
    page = make_page('<img src="https://x/a.png"><img src="https://x/b.png">')
    a, b = discover(page, settings)
    b.mark_fetched("b.png", "assets/b.png")
    page.soup.find("img").decompose()

    report = asyncio.run(rewrite_references(page, [a, b]))

    assert report.rewritten == [b]
    assert page.soup.find("img")["src"] == "assets/b.png"


def test_payload_is_serializable_and_runs_the_rewrite_script(make_page, settings):
    page = make_page(PAGE)
    link = fetched(discover(page, settings))[0]

    asyncio.run(rewrite_references(page, [link]))

    assert page.scripts == [REWRITE_SCRIPT]
    assert rewrite_payload(link) == {
        "selector": settings.resource_selector,
        "index": 0,
        "attr": "href",
        "value": "https://cdn.x/site.css",
        "path": "assets/0.bin",
    }
