"""Tests for the API.Bible client and chapter content parsing."""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from verbo_reader.bible.client import ApiBibleClient, BibleApiError, parse_chapter_content


def _response(data: object, status: int = 200) -> MagicMock:
    response = MagicMock()
    response.json.return_value = {"data": data}
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    return response


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    return session


class TestParseChapterContent:
    def test_verse_tags_split_text(self) -> None:
        nodes = [
            {
                "type": "tag",
                "name": "para",
                "items": [
                    {"type": "tag", "name": "verse", "attrs": {"number": "1"}, "items": [{"text": "1", "type": "text"}]},
                    {"type": "text", "text": "En el principio ", "verseId": "GEN.1.1"},
                    {"type": "text", "text": "creó Dios.", "verseId": "GEN.1.1"},
                    {"type": "tag", "name": "verse", "attrs": {"number": "2"}},
                    {"type": "text", "text": "Y la tierra...", "verseId": "GEN.1.2"},
                ],
            }
        ]
        verses = parse_chapter_content(nodes, "GEN.1")
        assert [(v.id, v.number) for v in verses] == [("GEN.1.1", "1"), ("GEN.1.2", "2")]
        assert verses[0].text == "En el principio creó Dios."
        assert verses[1].text == "Y la tierra..."

    def test_text_before_first_verse_dropped(self) -> None:
        nodes = [
            {"type": "text", "text": "Heading"},
            {"type": "tag", "name": "verse", "attrs": {"number": "1"}},
            {"type": "text", "text": "Body"},
        ]
        verses = parse_chapter_content(nodes, "PSA.23")
        assert len(verses) == 1
        assert verses[0].text == "Body"

    def test_missing_verse_id_is_derived(self) -> None:
        nodes = [
            {"type": "tag", "name": "verse", "attrs": {"number": "5"}},
            {"type": "text", "text": "texto"},
        ]
        assert parse_chapter_content(nodes, "JHN.3")[0].id == "JHN.3-5"

    def test_leading_verse_number_stripped(self) -> None:
        nodes = [
            {"type": "tag", "name": "verse", "attrs": {"number": "16"}},
            {"type": "text", "text": "16 Porque de tal manera", "verseId": "JHN.3.16"},
        ]
        assert parse_chapter_content(nodes, "JHN.3")[0].text == "Porque de tal manera"

    def test_empty_content(self) -> None:
        assert parse_chapter_content([], "JHN.3") == []


class TestApiBibleClient:
    def test_sends_api_key(self, session: MagicMock) -> None:
        ApiBibleClient("secret", session=session)
        assert session.headers["api-key"] == "secret"

    def test_fetch_books(self, session: MagicMock) -> None:
        session.get.return_value = _response(
            [{"id": "GEN", "bibleId": "b1", "name": "Génesis", "abbreviation": "Gn"}]
        )
        client = ApiBibleClient("k", base_url="https://example.test/v1/bibles/", session=session)

        books = asyncio.run(client.fetch_books("b1"))

        assert books[0].id == "GEN"
        assert books[0].edition_id == "b1"
        assert session.get.call_args.args[0] == "https://example.test/v1/bibles/b1/books"

    def test_fetch_chapters_skips_intro(self, session: MagicMock) -> None:
        session.get.return_value = _response(
            [
                {"id": "GEN.intro", "bookId": "GEN", "number": "intro"},
                {"id": "GEN.1", "bookId": "GEN", "number": "1"},
            ]
        )
        chapters = asyncio.run(ApiBibleClient("k", session=session).fetch_chapters("b1", "GEN"))
        assert [c.id for c in chapters] == ["GEN.1"]

    def test_fetch_chapter_content_requests_json(self, session: MagicMock) -> None:
        session.get.return_value = _response(
            {"content": [{"type": "tag", "name": "verse", "attrs": {"number": "1"}},
                         {"type": "text", "text": "Jehová es mi pastor", "verseId": "PSA.23.1"}]}
        )
        verses = asyncio.run(
            ApiBibleClient("k", session=session).fetch_chapter_content("b1", "PSA.23")
        )
        assert verses[0].text == "Jehová es mi pastor"
        params = session.get.call_args.kwargs["params"]
        assert params["content-type"] == "json"
        assert params["include-notes"] == "false"

    def test_http_error_raises_api_error(self, session: MagicMock) -> None:
        session.get.return_value = _response(None, status=503)
        with pytest.raises(BibleApiError):
            asyncio.run(ApiBibleClient("k", session=session).fetch_books("b1"))

    def test_network_error_raises_api_error(self, session: MagicMock) -> None:
        session.get.side_effect = requests.ConnectionError("offline")
        with pytest.raises(BibleApiError):
            asyncio.run(ApiBibleClient("k", session=session).fetch_books("b1"))
