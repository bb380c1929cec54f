"""Tests for the S3 store."""

from datetime import datetime, timezone

import pytest

from bucket_mirror.clients.base import TargetAPIError


@pytest.mark.asyncio
async def test_list_page_follows_continuation(s3_store, s3_stub):
    modified = datetime(2024, 1, 1, tzinfo=timezone.utc)
    s3_stub.add_response(
        "list_objects_v2",
        {
            "Contents": [{"Key": "Catalog/", "LastModified": modified}],
            "IsTruncated": True,
            "NextContinuationToken": "next-page",
        },
        {"Bucket": "test-bucket"},
    )
    s3_stub.add_response(
        "list_objects_v2",
        {"Contents": [{"Key": "Catalog/A.pdf", "LastModified": modified}], "IsTruncated": False},
        {"Bucket": "test-bucket", "ContinuationToken": "next-page"},
    )

    first = await s3_store.list_page()
    second = await s3_store.list_page(first.next_token)

    assert [o.key for o in first.entries] == ["Catalog/"]
    assert first.next_token == "next-page"
    assert [o.key for o in second.entries] == ["Catalog/A.pdf"]
    assert second.entries[0].modified == modified
    assert second.next_token is None


@pytest.mark.asyncio
async def test_list_empty_bucket(s3_store, s3_stub):
    s3_stub.add_response("list_objects_v2", {"IsTruncated": False}, {"Bucket": "test-bucket"})

    page = await s3_store.list_page()

    assert page.entries == []
    assert page.next_token is None


@pytest.mark.asyncio
async def test_put_public_object(s3_store, s3_stub):
    s3_stub.add_response(
        "put_object",
        {},
        {
            "Bucket": "test-bucket",
            "Key": "catalog/a.pdf",
            "Body": b"pdf bytes",
            "ContentType": "application/pdf",
            "ContentDisposition": 'inline; filename="A.pdf"',
            "ACL": "public-read",
        },
    )

    await s3_store.put(
        "catalog/a.pdf", b"pdf bytes", "application/pdf", 'inline; filename="A.pdf"'
    )


@pytest.mark.asyncio
async def test_put_error_becomes_target_error(s3_store, s3_stub):
    s3_stub.add_client_error("put_object", service_error_code="NoSuchBucket", http_status_code=404)

    with pytest.raises(TargetAPIError, match="NoSuchBucket"):
        await s3_store.put("a.txt", b"", "text/plain", 'inline; filename="a.txt"')


@pytest.mark.asyncio
async def test_put_text(s3_store, s3_stub):
    s3_stub.add_response(
        "put_object",
        {},
        {
            "Bucket": "test-bucket",
            "Key": "sitemap.xml",
            "Body": "<urlset/>".encode("utf-8"),
            "ContentType": "text/xml",
            "ACL": "public-read",
        },
    )

    await s3_store.put_text("sitemap.xml", "<urlset/>", content_type="text/xml")


@pytest.mark.asyncio
async def test_delete_many_reports_per_key(s3_store, s3_stub):
    s3_stub.add_response(
        "delete_objects",
        {
            "Deleted": [{"Key": "a.txt"}],
            "Errors": [{"Key": "b.txt", "Code": "AccessDenied", "Message": "Access Denied"}],
        },
        {
            "Bucket": "test-bucket",
            "Delete": {
                "Objects": [{"Key": "a.txt"}, {"Key": "b.txt"}, {"Key": "c.txt"}],
                "Quiet": False,
            },
        },
    )

    result = await s3_store.delete_many(["a.txt", "b.txt", "c.txt"])

    assert result.succeeded == ["a.txt"]
    assert result.failed["b.txt"] == "AccessDenied: Access Denied"
    # not mentioned in the response
    assert "c.txt" in result.failed


@pytest.mark.asyncio
async def test_delete_many_with_no_keys(s3_store, s3_stub):
    result = await s3_store.delete_many([])

    assert result.succeeded == []
    assert result.failed == {}


@pytest.mark.asyncio
async def test_delete_error_becomes_target_error(s3_store, s3_stub):
    s3_stub.add_client_error("delete_objects", service_error_code="InternalError")

    with pytest.raises(TargetAPIError):
        await s3_store.delete_many(["a.txt"])


def test_public_url(s3_store):
    url = s3_store.public_url("/catalog/a.pdf")

    assert url == "https://s3.amazonaws.com/test-bucket/catalog/a.pdf"


def test_presigned_url_with_disposition(s3_store):
    url = s3_store.presigned_url("catalog/a.pdf", disposition='attachment; filename="A.pdf"')

    assert "catalog/a.pdf" in url
    assert "response-content-disposition=" in url
    assert "X-Amz-Expires=900" in url
