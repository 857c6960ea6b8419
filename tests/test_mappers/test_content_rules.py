"""Tests for response classification."""

from vegscout.mappers.content_rules import classify_content, most_informative
from vegscout.schemas.menu import ContentTag

PAGE = "<html><body>" + "<p>Welcome to our trattoria, open for lunch and dinner.</p>" * 5 + "</body></html>"

CLOUDFLARE = (
    "<html><head><title>Just a moment...</title></head>"
    "<body>Checking your browser before accessing resto.com."
    '<div id="cf-challenge-running"></div></body></html>'
)


def test_empty_content():
    assert classify_content(None) == ContentTag.empty
    assert classify_content("") == ContentTag.empty
    assert classify_content("   \n ") == ContentTag.empty


def test_server_error_rejected():
    assert classify_content(PAGE, status_code=503) == ContentTag.error_page


def test_client_error_with_content_accepted():
    assert classify_content(PAGE, status_code=403) == ContentTag.html


def test_cloudflare_challenge_is_bot_blocked():
    assert classify_content(CLOUDFLARE, status_code=503) == ContentTag.error_page
    assert classify_content(CLOUDFLARE, status_code=200) == ContentTag.bot_blocked


def test_javascript_wall_only_on_short_pages():
    wall = "<html><body><noscript>Please enable JavaScript to view this site.</noscript></body></html>"
    assert classify_content(wall) == ContentTag.bot_blocked

    long_page = wall.replace("</body>", PAGE * 20 + "</body>")
    assert classify_content(long_page) == ContentTag.html


def test_pdf_markers():
    pdf = "%PDF-1.4\n1 0 obj << /Type /Page >> endobj\nxref\n" + "x" * 100
    assert classify_content(pdf) == ContentTag.pdf_binary
    assert classify_content(PAGE, content_type="application/pdf") == ContentTag.pdf_binary


def test_short_and_not_found_pages():
    assert classify_content("<p>hi</p>") == ContentTag.error_page
    not_found = "<html><body><h1>404</h1><p>Sorry, the page you requested could not be located.</p></body></html>"
    assert classify_content(not_found) == ContentTag.error_page


def test_most_informative_tag():
    assert most_informative([ContentTag.empty, ContentTag.bot_blocked, ContentTag.error_page]) == ContentTag.bot_blocked
    assert most_informative([ContentTag.bot_blocked, ContentTag.pdf_binary]) == ContentTag.pdf_binary
    assert most_informative([]) == ContentTag.empty
