"""
FileBin Upload Relay

Publishes a generated PDF to a public blob host so the signing provider
can fetch it by URL, then resolves the host's redirect to a direct URL.

Redirect resolution is best effort: when no redirect is observed the
uploaded URL is returned unchanged.
"""

import logging
import re
import secrets
import shutil
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from config import FileBinConfig
from .exceptions import UploadError

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 10
UPLOAD_TIMEOUT = 60

_LOCATION_HEADER = re.compile(r'^Location:\s*(\S+)', re.IGNORECASE | re.MULTILINE)


@dataclass
class RedirectResolution:
    url: str
    via_redirect: bool = False
    via: Optional[str] = None
    status: Optional[int] = None
    error: Optional[str] = None


@dataclass
class PublishedFile:
    """
    Attributes:
        url: Direct URL when a redirect was resolved, else the upload URL
        filebin_url: The URL the file was uploaded to
        via_redirect: True when ``url`` came from a redirect
        status: Upload response status
    """
    url: str
    filebin_url: str
    via_redirect: bool
    status: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ok': True,
            'url': self.url,
            'filebinUrl': self.filebin_url,
            'viaRedirect': self.via_redirect,
            'status': self.status,
        }


def _run_curl(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        ['curl', *args],
        capture_output=True,
        text=True,
        timeout=PROBE_TIMEOUT,
        check=False
    )


class FileBinUploader:
    """
    Uploads to filebin-style hosts: ``POST <base>/<bin>/<filename>``.

    A random bin is generated per upload unless one is configured.
    """

    def __init__(self, config: FileBinConfig, http=None, timeout: int = UPLOAD_TIMEOUT):
        self.config = config
        self.http = http or requests
        self.timeout = timeout

    def destination_url(self, filename: str) -> str:
        bin_id = self.config.bin or secrets.token_hex(12)
        return f"{self.config.base_url}/{quote(bin_id, safe='')}/{quote(filename, safe='')}"

    def publish(self, content: bytes, filename: Optional[str] = None) -> PublishedFile:
        """
        Upload ``content`` and resolve a direct-access URL for it.

        Raises:
            UploadError: Non-2xx response or network failure
        """
        safe_name = filename or 'document.pdf'
        filebin_url = self.destination_url(safe_name)
        logger.warning(f"[filebin] POST upload {filebin_url}")

        try:
            response = self.http.post(
                filebin_url,
                data=content,
                headers={'Content-Type': 'application/pdf', 'cid': self.config.cid},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"[filebin] upload error: {e}")
            raise UploadError(f"Upload to {filebin_url} failed: {e}")

        if not response.ok:
            body = (response.text or '')[:300]
            logger.error(f"[filebin] upload failed: {response.status_code} {body}")
            raise UploadError(
                f"Upload to {filebin_url} failed with status {response.status_code}",
                status_code=response.status_code,
                response_body=body
            )

        resolved = self.resolve_direct_url(filebin_url)
        logger.info(
            f"[filebin] upload success {filebin_url} -> {resolved.url} "
            f"(viaRedirect={resolved.via_redirect})"
        )
        return PublishedFile(
            url=resolved.url,
            filebin_url=filebin_url,
            via_redirect=resolved.via_redirect,
            status=response.status_code
        )

    def resolve_direct_url(self, url: str) -> RedirectResolution:
        """
        Follow a single redirect from ``url``.

        Tries ``curl -I`` first, since some hosts show an interstitial page
        to non-curl clients; falls back to a GET without redirect following.
        """
        via_curl = self._resolve_with_curl(url)
        if via_curl:
            return via_curl

        try:
            response = self.http.get(url, allow_redirects=False, timeout=PROBE_TIMEOUT)
        except requests.exceptions.RequestException as e:
            logger.error(f"[filebin] resolve direct URL error: {e}")
            return RedirectResolution(url=url, error=str(e))

        location = response.headers.get('Location')
        if 300 <= response.status_code < 400 and location:
            logger.info(f"[filebin] resolved {url} -> {location} via requests")
            return RedirectResolution(url=location, via_redirect=True, via='requests',
                                      status=response.status_code)

        logger.info(f"[filebin] no redirect for {url} (status {response.status_code})")
        return RedirectResolution(url=url, status=response.status_code)

    def _resolve_with_curl(self, url: str) -> Optional[RedirectResolution]:
        if not shutil.which('curl'):
            return None
        try:
            completed = _run_curl('-I', '--', url)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"[filebin] curl -I failed, falling back to requests: {e}")
            return None

        if completed.returncode != 0:
            logger.warning(f"[filebin] curl -I exited {completed.returncode}, falling back to requests")
            return None

        match = _LOCATION_HEADER.search(completed.stdout or '')
        if not match:
            logger.warning(f"[filebin] curl -I had no Location header: {(completed.stdout or '')[:400]}")
            return None

        location = match.group(1).strip()
        logger.info(f"[filebin] resolved {url} -> {location} via curl")
        return RedirectResolution(url=location, via_redirect=True, via='curl')


def probe_redirects(url: str, http=None) -> Dict[str, Any]:
    """
    Diagnostic comparison of how ``url`` redirects for different clients.

    HEAD and GET without redirect following, then ``curl -I`` and
    ``curl -I -L``. Every probe uses a short fixed timeout.
    """
    http = http or requests
    result: Dict[str, Any] = {'url': url}

    for label, method in (('headManual', 'head'), ('getManual', 'get')):
        try:
            response = getattr(http, method)(url, allow_redirects=False, timeout=PROBE_TIMEOUT)
            result[label] = {
                'status': response.status_code,
                'statusText': getattr(response, 'reason', None),
                'headers': dict(response.headers),
            }
        except requests.exceptions.RequestException as e:
            result[f"{label}Error"] = str(e)

    if not shutil.which('curl'):
        result['curlSetupError'] = 'curl not available'
        return result

    for label, args in (('curlHead', ('-I', '--', url)), ('curlHeadFollow', ('-I', '-L', '--', url))):
        try:
            completed = _run_curl(*args)
            entry = {'stdout': completed.stdout, 'stderr': completed.stderr}
            if completed.returncode != 0:
                entry['error'] = f"curl exited with status {completed.returncode}"
            result[label] = entry
        except (OSError, subprocess.SubprocessError) as e:
            result[label] = {'error': str(e)}

    return result
