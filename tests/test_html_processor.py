"""Tests for campaign link and view tracking helpers."""

from app.utils.html_processor import (
    TRACKING_PIXEL_PNG,
    find_tracked_urls,
    rewrite_tracked_links,
    tracking_pixel_tag,
)


class TestFindTrackedUrls:
    def test_template_call(self):
        body = '<a href="{{ TrackLink("https://example.com/a") }}">A</a>'
        assert find_tracked_urls(body) == ["https://example.com/a"]

    def test_single_quotes(self):
        body = "<a href=\"{{ TrackLink('https://example.com/a') }}\">A</a>"
        assert find_tracked_urls(body) == ["https://example.com/a"]

    def test_href_suffix(self):
        body = '<a href="https://example.com/b@TrackLink">B</a>'
        assert find_tracked_urls(body) == ["https://example.com/b"]

    def test_suffix_does_not_swallow_following_markup(self):
        body = '<a href="https://example.com/b@TrackLink">B</a> <a href="https://example.com/c">C</a>'
        assert find_tracked_urls(body) == ["https://example.com/b"]

    def test_untracked_links_ignored(self):
        body = '<a href="https://example.com/plain">Plain</a><a href="mailto:x@example.com">M</a>'
        assert find_tracked_urls(body) == []

    def test_duplicates_dropped_in_order(self):
        body = (
            '<a href="https://b.example.com@TrackLink">1</a>'
            '{{ TrackLink("https://a.example.com") }}'
            '<a href="https://b.example.com@TrackLink">2</a>'
        )
        assert find_tracked_urls(body) == ["https://a.example.com", "https://b.example.com"]


class TestRewriteTrackedLinks:
    def test_rewrites_suffix(self):
        html = '<p><a href="https://example.com/x@TrackLink">X</a></p>'
        result = rewrite_tracked_links(html, lambda url: f"http://t/link/{url[-1]}")
        assert 'href="http://t/link/x"' in result
        assert "@TrackLink" not in result

    def test_untracked_left_alone(self):
        html = '<a href="https://example.com/plain">P</a><a href="https://example.com/x@TrackLink">X</a>'
        result = rewrite_tracked_links(html, lambda url: "http://t/link")
        assert 'href="https://example.com/plain"' in result
        assert result.count("http://t/link") == 1

    def test_unknown_destination_falls_back_to_url(self):
        html = '<a href="https://example.com/x@TrackLink">X</a>'
        result = rewrite_tracked_links(html, lambda url: None)
        assert 'href="https://example.com/x"' in result

    def test_no_tracked_links_unchanged(self):
        html = "<p>No links here</p>"
        assert rewrite_tracked_links(html, lambda url: "never") == html


class TestTrackingPixel:
    def test_tag_attributes(self):
        tag = tracking_pixel_tag("http://t/campaign/c/s/px.png")
        assert 'src="http://t/campaign/c/s/px.png"' in tag
        assert 'width="1"' in tag
        assert 'height="1"' in tag
        assert 'style="display:none' in tag

    def test_png_bytes(self):
        assert TRACKING_PIXEL_PNG.startswith(b"\x89PNG\r\n\x1a\n")
        assert TRACKING_PIXEL_PNG.endswith(b"IEND\xaeB`\x82")

    def test_png_is_one_pixel(self):
        # IHDR width and height, big-endian
        assert TRACKING_PIXEL_PNG[16:24] == b"\x00\x00\x00\x01\x00\x00\x00\x01"
