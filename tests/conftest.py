import json
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import httpx
import pytest

from loris_gateway.adapters.factory import AdaptorFactory
from loris_gateway.core.config import Settings
from loris_gateway.domain.models.storage import UploadRequest

B2_API_URL = "https://api001.backblazeb2.com"
B2_UPLOAD_URL = "https://pod-000-1000-00.backblaze.com/b2api/v2/b2_upload_file/bucket-1/c001"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeRemote:
    """In-memory stand-in for the B2 and Daraja HTTP APIs."""

    def __init__(self):
        self.calls: List[str] = []
        self.requests: Dict[str, Any] = {}
        self.headers: Dict[str, httpx.Headers] = {}
        self.files: Dict[str, str] = {}
        self.fail_next: Dict[str, int] = {}
        self.upload_url_response: Optional[Dict[str, Any]] = None
        self.wrap_upload_response = False
        self.buckets = [
            {"bucketId": "bucket-1", "bucketName": "loris-images"},
            {"bucketId": "bucket-2", "bucketName": "archive"},
        ]

    def count(self, suffix: str) -> int:
        return sum(1 for path in self.calls if path.endswith(suffix))

    def fail_once(self, suffix: str, status_code: int = 500) -> None:
        self.fail_next[suffix] = status_code

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(path)
        self.headers[path] = request.headers
        body = json.loads(request.content) if request.content and "json" in request.headers.get("content-type", "") else None
        self.requests[path] = body

        for suffix, status_code in list(self.fail_next.items()):
            if path.endswith(suffix):
                del self.fail_next[suffix]
                return httpx.Response(status_code, json={"errorMessage": "Remote service unavailable"})

        # Daraja
        if path.endswith("/oauth/v1/generate"):
            return httpx.Response(200, json={"access_token": "daraja-token", "expires_in": "3599"})
        if path.endswith("/mpesa/stkpush/v1/processrequest"):
            return httpx.Response(200, json={
                "MerchantRequestID": "29115-34620561-1",
                "CheckoutRequestID": "ws_CO_191220191020363925",
                "ResponseCode": "0",
                "ResponseDescription": "Success. Request accepted for processing",
                "CustomerMessage": "Success. Request accepted for processing",
            })
        if path.endswith("/mpesa/stkpushquery/v1/query"):
            return httpx.Response(200, json={
                "ResponseCode": "0",
                "MerchantRequestID": "29115-34620561-1",
                "CheckoutRequestID": body["CheckoutRequestID"],
                "ResultCode": "1032",
                "ResultDesc": "Request cancelled by user",
            })

        # B2
        if path.endswith("b2_authorize_account"):
            return httpx.Response(200, json={
                "accountId": "account-1",
                "authorizationToken": "account-token",
                "apiUrl": B2_API_URL,
                "downloadUrl": "https://f001.backblazeb2.com",
            })
        if path.endswith("b2_list_buckets"):
            return httpx.Response(200, json={"buckets": self.buckets})
        if path.endswith("b2_get_upload_url"):
            if self.upload_url_response is not None:
                return httpx.Response(200, json=self.upload_url_response)
            return httpx.Response(200, json={
                "bucketId": body["bucketId"],
                "uploadUrl": B2_UPLOAD_URL,
                "authorizationToken": "upload-token",
            })
        if "b2_upload_file" in path:
            name = unquote(request.headers["X-Bz-File-Name"])
            file_id = f"file-{len(self.files) + 1}"
            self.files[name] = file_id
            info = {"fileId": file_id, "fileName": name, "contentLength": len(request.content)}
            return httpx.Response(200, json={"data": info} if self.wrap_upload_response else info)
        if path.endswith("b2_list_file_names"):
            names = sorted(n for n in self.files if n.startswith(body["prefix"]) and n >= body["startFileName"])
            files = [{"fileName": n, "fileId": self.files[n]} for n in names[:body["maxFileCount"]]]
            return httpx.Response(200, json={"files": files, "nextFileName": None})
        if path.endswith("b2_delete_file_version"):
            self.files.pop(body["fileName"], None)
            return httpx.Response(200, json={"fileId": body["fileId"], "fileName": body["fileName"]})

        return httpx.Response(404, json={"message": f"unexpected path {path}"})


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def http_client(remote) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(remote.handler))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        ENV="production",
        B2_KEY_ID="key-id",
        B2_APPLICATION_KEY="application-key",
        B2_BUCKET_NAME="loris-images",
        MPESA_CONSUMER_KEY="consumer-key",
        MPESA_CONSUMER_SECRET="consumer-secret",
        MPESA_SHORTCODE="174379",
        MPESA_PASSKEY="test-passkey",
        MPESA_CALLBACK_URL="https://example.com/api/mpesa/callback",
        UPLOAD_TMP_DIR=str(tmp_path / "uploads"),
    )


@pytest.fixture
def factory(settings, http_client) -> AdaptorFactory:
    return AdaptorFactory(settings, http_client=http_client)


@pytest.fixture
def storage_adapter(factory):
    return factory.create_storage_adaptor()


@pytest.fixture
def payment_adapter(factory):
    return factory.create_payment_adaptor()


@pytest.fixture
def make_upload(tmp_path):
    """Write a temporary file and describe it the way the HTTP layer would."""

    def _make(name: str = "photo.png", content: bytes = PNG_BYTES,
              content_type: Optional[str] = "image/png", size: Optional[int] = None) -> UploadRequest:
        path = tmp_path / f"spooled-{len(list(tmp_path.iterdir()))}-{name}"
        path.write_bytes(content)
        return UploadRequest(
            path=str(path),
            original_name=name,
            size=len(content) if size is None else size,
            content_type=content_type,
        )

    return _make
