"""Unit tests for the content resolver, against httpx.MockTransport."""

import json

import httpx
import pytest

from cairn.errors import ContentMalformed, ContentUnreachable
from cairn.kernel.storage.content_resolver import ContentResolver, normalize_address
from cairn.schemas.documents import ProjectMetadata, ProofDocument


def _resolver(handler) -> ContentResolver:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ContentResolver(
        client,
        gateway_url="https://gateway.test/",
        api_url="http://node.test:5001",
        owns_client=True,
    )


class TestNormalizeAddress:

    def test_strips_scheme_and_slashes(self):
        assert normalize_address(" ipfs://bafyabc/ ") == "bafyabc"

    def test_plain_cid_unchanged(self):
        assert normalize_address("bafyabc") == "bafyabc"


class TestResolve:

    @pytest.mark.asyncio
    async def test_resolves_and_validates_document(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={
                "title": "Arm calibration",
                "description": "Calibrate a 6-DoF arm",
                "url": "https://example.org",
                "domain": "Hardware",
                "unexpected": "ignored",
            })

        resolver = _resolver(handler)
        doc = await resolver.resolve("ipfs://bafymeta", ProjectMetadata)
        await resolver.close()

        assert seen == ["https://gateway.test/ipfs/bafymeta"]
        assert doc.title == "Arm calibration"
        assert doc.info_url == "https://example.org"
        assert doc.domain.value == "Hardware"

    @pytest.mark.asyncio
    async def test_gateway_error_is_unreachable(self):
        resolver = _resolver(lambda request: httpx.Response(504))
        with pytest.raises(ContentUnreachable) as exc_info:
            await resolver.resolve("bafymissing", ProofDocument)
        assert exc_info.value.address == "bafymissing"

    @pytest.mark.asyncio
    async def test_transport_error_is_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        resolver = _resolver(handler)
        with pytest.raises(ContentUnreachable):
            await resolver.fetch("bafyabc")

    @pytest.mark.asyncio
    async def test_schema_mismatch_is_malformed(self):
        resolver = _resolver(lambda request: httpx.Response(200, json={"title": "no description"}))
        with pytest.raises(ContentMalformed):
            await resolver.resolve("bafyabc", ProofDocument)

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self):
        resolver = _resolver(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(ContentMalformed):
            await resolver.resolve("bafyabc", ProjectMetadata)

    @pytest.mark.asyncio
    async def test_empty_address_is_malformed(self):
        resolver = _resolver(lambda request: httpx.Response(200))
        with pytest.raises(ContentMalformed):
            await resolver.fetch("ipfs://")


class TestPublish:

    @pytest.mark.asyncio
    async def test_uploads_document_and_returns_cid(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = request.content
            return httpx.Response(200, json={"Name": "proof.json", "Hash": "bafynew", "Size": "120"})

        resolver = _resolver(handler)
        document = ProofDocument(
            project_id="bafyproject",
            description="Reran training",
            code_url="https://github.com/example/run",
            output_url="https://example.org/out",
        )
        cid = await resolver.publish(document, filename="proof.json")

        assert cid == "bafynew"
        assert captured["url"].startswith("http://node.test:5001/api/v0/add")
        assert "cid-version=1" in captured["url"]
        assert b'"project_id":"bafyproject"' in captured["body"]
        assert b"video_url" not in captured["body"]

    @pytest.mark.asyncio
    async def test_missing_hash_is_malformed(self):
        resolver = _resolver(lambda request: httpx.Response(200, content=json.dumps({"Name": "x"})))
        with pytest.raises(ContentMalformed):
            await resolver.publish(ProofDocument(
                project_id="p", description="d", code_url="c", output_url="o",
            ))

    @pytest.mark.asyncio
    async def test_no_api_configured_is_unreachable(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        resolver = ContentResolver(client, gateway_url="https://gateway.test")
        with pytest.raises(ContentUnreachable):
            await resolver.publish(ProofDocument(
                project_id="p", description="d", code_url="c", output_url="o",
            ))
