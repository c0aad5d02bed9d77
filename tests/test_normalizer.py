from datetime import datetime, timezone

import pytest

from newsfeed.services.normalizer import normalize, parse_date
from newsfeed.services.parser import parse_feed

NOW = datetime(2025, 2, 1, 12, 0, tzinfo=timezone.utc)


def _item(body: str):
    xml = (
        '<rss xmlns:content="http://purl.org/rss/1.0/modules/content/" '
        'xmlns:media="http://search.yahoo.com/mrss/" '
        'xmlns:dc="http://purl.org/dc/elements/1.1/">'
        f"<channel><item>{body}</item></channel></rss>"
    )
    return next(parse_feed(xml.encode()))


def test_full_rss_item(feed):
    node = next(parse_feed(feed("rss_two_items.xml")))
    entry = normalize(node, now=NOW)

    assert entry.guid == "a"
    assert entry.title == "First story"
    assert entry.description == "Short <b>summary</b> of the first story"
    assert entry.content.startswith("<p>Full text</p>")
    assert entry.link == "https://ex.com/news/a"
    assert entry.image_url == "https://ex.com/a.jpg"
    assert entry.published_at == datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc)


def test_second_rss_item_uses_thumbnail_and_description_as_content(feed):
    nodes = list(parse_feed(feed("rss_two_items.xml")))
    entry = normalize(nodes[1], now=NOW)

    assert entry.content == entry.description == "Only a description"
    assert entry.image_url == "https://ex.com/b-thumb.jpg"
    assert entry.published_at == datetime(2025, 1, 6, 9, 30, tzinfo=timezone.utc)


def test_atom_entries(feed):
    one, two = [normalize(n, now=NOW) for n in parse_feed(feed("atom_entries.xml"))]

    assert one.guid == "urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a"
    assert one.link == "https://ex.com/atom/1"
    assert one.description == "Entry one summary"
    assert one.image_url == "https://ex.com/atom-1.png"
    assert one.published_at == datetime(2025, 1, 6, 18, 30, 2, tzinfo=timezone.utc)

    # no <id>: the link stands in as guid
    assert two.guid == "https://ex.com/atom/2"
    assert two.link == "https://ex.com/atom/2"
    assert two.description == "Entry two summary"
    # content only falls back to <description>, not <summary>
    assert two.content is None
    assert two.published_at == datetime(2025, 1, 5, 6, 0, tzinfo=timezone.utc)


def test_guid_falls_back_to_link():
    entry = normalize(_item("<title>t</title><link> https://ex.com/x </link>"), now=NOW)
    assert entry.guid == "https://ex.com/x"


def test_id_is_used_when_guid_missing():
    entry = normalize(_item("<id>tag:ex.com,2025:1</id><title>t</title><link>https://ex.com/x</link>"), now=NOW)
    assert entry.guid == "tag:ex.com,2025:1"


def test_guid_from_item_attribute():
    node = next(parse_feed(b'<rss><channel><item guid="g-7"><title>t</title></item></channel></rss>'))
    assert normalize(node, now=NOW).guid == "g-7"


def test_item_without_guid_or_link_is_dropped():
    assert normalize(_item("<title>Orphan</title><description>d</description>"), now=NOW) is None


def test_item_without_title_is_dropped():
    node = _item(
        "<guid>g</guid><link>https://ex.com/g</link><description>d</description>"
        "<pubDate>Mon, 06 Jan 2025 10:00:00 +0000</pubDate>"
    )
    assert normalize(node, now=NOW) is None


def test_blank_title_is_dropped():
    assert normalize(_item("<guid>g</guid><title>   </title>"), now=NOW) is None


def test_optional_fields_are_none():
    entry = normalize(_item("<guid>g</guid><title>t</title>"), now=NOW)
    assert entry.description is None
    assert entry.content is None
    assert entry.link is None
    assert entry.image_url is None
    assert entry.published_at == NOW


def test_description_falls_back_to_summary():
    entry = normalize(_item("<guid>g</guid><title>t</title><summary>s</summary>"), now=NOW)
    assert entry.description == "s"


def test_content_prefers_encoded_over_description():
    entry = normalize(
        _item("<guid>g</guid><title>t</title><description>d</description>"
              "<content:encoded>full</content:encoded>"),
        now=NOW,
    )
    assert entry.content == "full"
    assert entry.description == "d"


def test_image_priority_enclosure_before_media():
    entry = normalize(
        _item('<guid>g</guid><title>t</title>'
              '<media:thumbnail url="https://ex.com/thumb.jpg"/>'
              '<media:content url="https://ex.com/media.jpg"/>'
              '<enclosure url="https://ex.com/enc.jpg" type="image/jpeg"/>'),
        now=NOW,
    )
    assert entry.image_url == "https://ex.com/enc.jpg"


def test_image_element_url_attribute():
    entry = normalize(_item('<guid>g</guid><title>t</title><image url="https://ex.com/i.png"/>'), now=NOW)
    assert entry.image_url == "https://ex.com/i.png"


def test_image_scraped_from_description_html():
    entry = normalize(
        _item("<guid>g</guid><title>t</title>"
              "<description><![CDATA[<p>Hi</p><IMG class='x' SRC='https://ex.com/pic.gif' />]]></description>"),
        now=NOW,
    )
    assert entry.image_url == "https://ex.com/pic.gif"


def test_first_parseable_date_wins():
    entry = normalize(
        _item("<guid>g</guid><title>t</title><pubDate>garbage</pubDate>"
              "<published>also garbage</published>"
              "<updated>2025-01-03T04:05:06+00:00</updated>"
              "<dc:date>2025-01-01T00:00:00Z</dc:date>"),
        now=NOW,
    )
    assert entry.published_at == datetime(2025, 1, 3, 4, 5, 6, tzinfo=timezone.utc)


def test_unparseable_dates_default_to_now():
    entry = normalize(
        _item("<guid>g</guid><title>t</title><pubDate>not a date</pubDate><dc:date>??</dc:date>"),
        now=NOW,
    )
    assert entry.published_at == NOW


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Mon, 06 Jan 2025 10:00:00 +0000", datetime(2025, 1, 6, 10, tzinfo=timezone.utc)),
        ("Tue, 07 Jan 2025 09:15:00 GMT", datetime(2025, 1, 7, 9, 15, tzinfo=timezone.utc)),
        ("2025-01-07T11:00:00Z", datetime(2025, 1, 7, 11, tzinfo=timezone.utc)),
        ("2025-01-07T14:00:00+03:00", datetime(2025, 1, 7, 11, tzinfo=timezone.utc)),
        ("2025-01-07", datetime(2025, 1, 7, tzinfo=timezone.utc)),
        ("not a date", None),
        ("", None),
    ],
)
def test_parse_date(value, expected):
    assert parse_date(value) == expected
