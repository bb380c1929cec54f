"""Tests for the file service."""

from datetime import datetime, timezone
from urllib.parse import parse_qs, urlsplit

import pytest

from bucket_mirror.clients.base import RawEntry, SourceAPIError
from bucket_mirror.services import FileService

BUCKET_URL = "https://s3.amazonaws.com/test-bucket"


@pytest.fixture
def file_service(dropbox_client, s3_store, config) -> FileService:
    return FileService(dropbox_client, s3_store, config)


@pytest.fixture
def catalog(mock_dropbox):
    mock_dropbox.add_folder("/Catalog")
    mock_dropbox.add_file("/Catalog/Price List.PDF", "2024-01-03T00:00:00Z")
    mock_dropbox.add_file("/Catalog/Brochure.pdf", "2024-01-05T00:00:00Z")
    mock_dropbox.add_folder("/Catalog/Archive")
    mock_dropbox.add_file("/Catalog/Archive/2019.xlsx", "2024-01-04T00:00:00Z")
    mock_dropbox.add_file("/index.html", "2024-01-01T00:00:00Z")
    return mock_dropbox


@pytest.mark.asyncio
async def test_list_files_in_folder(file_service, catalog):
    files = await file_service.list_files("Catalog")

    assert [f.path for f in files] == [
        f"{BUCKET_URL}/catalog/brochure.pdf",
        f"{BUCKET_URL}/catalog/price list.pdf",
    ]
    price_list = files[1]
    assert price_list.name == "Price List"
    assert price_list.type == ".PDF"
    assert price_list.modified == datetime(2024, 1, 3, tzinfo=timezone.utc)
    assert price_list.id is not None


@pytest.mark.asyncio
async def test_list_files_follows_cursor(file_service, catalog):
    # three entries directly in /Catalog, two per page
    await file_service.list_files("/Catalog")

    paths = [r.url.path for r in catalog.requests]
    assert paths == ["/2/files/list_folder", "/2/files/list_folder/continue"]


@pytest.mark.asyncio
async def test_list_root(file_service, catalog):
    files = await file_service.list_files()

    assert [f.name for f in files] == ["index"]


@pytest.mark.asyncio
async def test_recent_updates_newest_first(file_service, catalog):
    files = await file_service.get_recent_updates("Catalog")

    assert [f.name for f in files] == ["Brochure", "2019", "Price List"]


@pytest.mark.asyncio
async def test_recent_updates_count(file_service, catalog):
    files = await file_service.get_recent_updates("", count=2)

    assert [f.name for f in files] == ["Brochure", "2019"]


@pytest.mark.asyncio
async def test_listing_error_propagates(file_service, catalog):
    catalog.fail_status = 401

    with pytest.raises(SourceAPIError):
        await file_service.list_files("Catalog")


def test_format_entries_drops_folders(file_service):
    entries = [
        RawEntry("folder", "/Docs", "/docs"),
        RawEntry("file", "/Docs/Undated.txt", "/docs/undated.txt"),
        RawEntry(
            "file",
            "/Docs/Dated.txt",
            "/docs/dated.txt",
            datetime(2024, 1, 1, tzinfo=timezone.utc),
        ),
    ]

    by_modified = file_service.format_entries(entries, "modified")

    assert [f.name for f in by_modified] == ["Dated", "Undated"]
    assert by_modified[1].modified is None


def test_get_file_link(file_service):
    link = file_service.get_file_link("/Catalog/Price List.PDF")

    assert link.link == f"{BUCKET_URL}/catalog/price list.pdf"
    assert "catalog/price%20list.pdf" in link.download_link
    assert "response-content-disposition=attachment" in link.download_link


def test_get_file_link_escapes_download_name(file_service):
    link = file_service.get_file_link("/Docs/Preis €.pdf")

    query = parse_qs(urlsplit(link.download_link).query)
    assert query["response-content-disposition"] == [
        "attachment; filename=\"Preis _.pdf\"; filename*=UTF-8''Preis%20%E2%82%AC.pdf"
    ]


@pytest.mark.parametrize("path", [None, ""])
def test_get_file_link_requires_path(file_service, path):
    with pytest.raises(ValueError, match="The path parameter is required."):
        file_service.get_file_link(path)
