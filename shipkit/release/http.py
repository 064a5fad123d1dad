"""
HTTP 适配器

基于 requests 实现上传与发布系统接口。超时由适配器负责，协调器把它们当作黑盒。
"""

from typing import Any, Dict, Mapping, Optional

import requests
from requests.auth import HTTPBasicAuth

from ..build.build_context import Credential
from ..errors import ReleaseApiFailed
from ..utils.logging import debug, LogStage
from .models import Deployment, Release, ReleasePackage, UploadResult

UPLOAD_SUCCESS_STATUS = 201


def _response_detail(response: requests.Response) -> str:
    text = (response.text or "").strip()
    return f"{response.reason or ''} {text}".strip()


class HttpArchiveUploader:
    """通过 PUT 上传归档（Basic 认证）"""

    def __init__(
        self,
        endpoint: str,
        credential: Credential,
        timeout: float = 300.0,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.credential = credential
        self.timeout = timeout
        self.session = session or requests.Session()

    def upload(self, data: bytes) -> UploadResult:
        debug(f"PUT {self.endpoint} ({len(data)} bytes)", stage=LogStage.UPLOAD)
        try:
            response = self.session.put(
                self.endpoint,
                data=data,
                headers={"Content-Type": "application/octet-stream"},
                auth=HTTPBasicAuth(self.credential.username, self.credential.password),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            return UploadResult(success=False, detail=str(e))

        return UploadResult(
            success=response.status_code == UPLOAD_SUCCESS_STATUS,
            status_code=response.status_code,
            detail=_response_detail(response),
        )


class ReleaseApiClient:
    """发布系统 REST 客户端"""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"X-ApiKey": api_key})

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.api_url}/{path.lstrip('/')}"
        debug(f"{method} {url}", stage=LogStage.RELEASE)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ReleaseApiFailed(f"{method} {url} failed: {e}", config_path="release.api_url") from e

        if not response.ok:
            raise ReleaseApiFailed(
                f"{method} {url} returned {response.status_code}: {_response_detail(response)}",
                config_path="release.api_url",
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ReleaseApiFailed(f"{method} {url} returned invalid JSON: {e}", config_path="release.api_url") from e

    def get_release(self, application: str, release_name: str) -> Release:
        data = self._request(
            "GET",
            "api/releases",
            params={"applicationName": application, "releaseNumber": release_name},
        )
        releases = data if isinstance(data, list) else [data] if data else []
        if not releases:
            raise ReleaseApiFailed(
                f"Release '{release_name}' of application '{application}' was not found",
                config_path="release.application",
            )
        item: Dict[str, Any] = releases[0]
        return Release(
            application=item.get("applicationName", application),
            number=item.get("number", release_name),
            id=item.get("id"),
            raw=item,
        )

    def create_release_package(
        self, release: Release, package_number: str, variables: Mapping[str, str]
    ) -> ReleasePackage:
        data = self._request(
            "POST",
            "api/releases/packages/create",
            json={
                "applicationName": release.application,
                "releaseNumber": release.number,
                "packageNumber": package_number,
                "variables": dict(variables),
            },
        )
        return ReleasePackage(
            release=release,
            number=data.get("number", package_number),
            variables=dict(variables),
            id=data.get("id"),
            raw=data,
        )

    def publish_package(self, package: ReleasePackage) -> Deployment:
        data = self._request(
            "POST",
            "api/releases/packages/deploy",
            json={
                "applicationName": package.release.application,
                "releaseNumber": package.release.number,
                "packageNumber": package.number,
            },
        )
        return Deployment(package=package, id=data.get("id"), status=data.get("status", ""), raw=data)
