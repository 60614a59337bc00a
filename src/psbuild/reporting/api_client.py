# reporting/api_client.py
from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Optional
from urllib.parse import urljoin

from .models import BuildMessage


class APIError(Exception):
    """Raised when build worker API requests fail."""
    pass


class AppVeyorClient:
    """HTTP client for the AppVeyor build worker API."""

    def __init__(self, base_url: str, timeout: float = 10.0):
        """
        Initialize API client.

        Args:
            base_url: Base URL of the build worker API (APPVEYOR_API_URL)
            timeout: Socket timeout for each request, in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        data: Optional[dict] = None,
    ) -> dict:
        """
        Make an HTTP request to the API.

        Raises:
            APIError: If the request fails
        """
        url = urljoin(self.base_url + "/", path.lstrip("/"))

        req_headers = {
            "Content-Type": "application/json",
        }
        req_data = None
        if data is not None:
            req_data = json.dumps(data).encode("utf-8")

        try:
            req = urllib.request.Request(url, data=req_data, headers=req_headers, method=method)
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                response_data = response.read().decode("utf-8")
                if response_data:
                    return json.loads(response_data)
                return {}
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8") if e.fp else ""
            raise APIError(f"API request failed: {e.code} {e.reason}. {error_body}")
        except urllib.error.URLError as e:
            raise APIError(f"Network error: {e.reason}")
        except json.JSONDecodeError as e:
            raise APIError(f"Invalid JSON response: {e}")
        except ValueError as e:
            # malformed APPVEYOR_API_URL, e.g. no scheme
            raise APIError(f"Invalid API URL {url!r}: {e}")
        except OSError as e:
            raise APIError(f"Network error: {e}")

    def add_message(self, message: BuildMessage) -> None:
        """Add a message to the build's Messages tab."""
        self._request("POST", "/api/build/messages", data=message.model_dump())
