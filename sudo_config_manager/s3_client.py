"""Anonymous read-only S3 access for service info documents."""

import logging
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from typing import List, Optional
from urllib.parse import quote

import requests

from .errors import TransportError

logger = logging.getLogger(__name__)

S3_XML_NAMESPACE = "{http://s3.amazonaws.com/doc/2006-03-01/}"


class S3Client(ABC):
    """
    Abstraction over the S3 bucket holding service info documents.

    Implementations raise TransportError when the bucket cannot be reached.
    """

    @property
    @abstractmethod
    def region(self) -> str:
        """AWS region hosting the bucket."""

    @property
    @abstractmethod
    def bucket(self) -> str:
        """S3 bucket associated with this client."""

    @abstractmethod
    def get_object(self, key: str) -> bytes:
        """
        Retrieve an object.

        Args:
            key: S3 key of the object

        Returns:
            Object body
        """

    @abstractmethod
    def list_objects(self) -> List[str]:
        """
        List the keys in the bucket, in the order S3 returns them.
        """


class DefaultS3Client(S3Client):
    """
    S3 client using the S3 REST API with anonymous credentials.

    Service info buckets are publicly readable, so requests are unsigned.
    """

    def __init__(self, region: str, bucket: str,
                 endpoint_template: str = "https://{bucket}.s3.{region}.amazonaws.com",
                 timeout: float = 10.0,
                 session: Optional[requests.Session] = None,
                 log: Optional[logging.Logger] = None):
        """
        Initialize S3 client.

        Args:
            region: AWS region
            bucket: S3 bucket name
            endpoint_template: Base URL with {bucket} and {region} placeholders
            timeout: Per-request timeout in seconds
            session: Optional requests session. If None, one is created and
                closed by close()
            log: Optional logger
        """
        self._region = region
        self._bucket = bucket
        self.base_url = endpoint_template.format(bucket=bucket, region=region).rstrip('/')
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()
        self._log = log or logger

    @property
    def region(self) -> str:
        return self._region

    @property
    def bucket(self) -> str:
        return self._bucket

    def close(self) -> None:
        """Close the HTTP session if this client created it. Safe to call twice."""
        if self._owns_session:
            self.session.close()

    def get_object(self, key: str) -> bytes:
        self._log.info(f"Retrieving S3 object: bucket={self.bucket}, key={key}")
        url = f"{self.base_url}/{quote(key, safe='/')}"
        response = self._get(url)
        return response.content

    def list_objects(self) -> List[str]:
        self._log.info(f"Listing S3 objects: bucket={self.bucket}.")

        keys: List[str] = []
        params = {'list-type': '2'}
        while True:
            response = self._get(self.base_url + '/', params=params)
            page_keys, next_token = self._parse_list_response(response.content)
            keys.extend(page_keys)
            if not next_token:
                return keys
            params = {'list-type': '2', 'continuation-token': next_token}

    def _get(self, url: str, params=None) -> requests.Response:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Timed out after {self.timeout}s requesting {url}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Failed to request {url}: {e}") from e
        return response

    def _parse_list_response(self, content: bytes):
        """
        Parse a ListObjectsV2 response body.

        Returns:
            Tuple of (keys, next continuation token or None)
        """
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise TransportError(f"Invalid ListObjectsV2 response from bucket {self.bucket}: {e}") from e

        keys = []
        for contents in root.findall(f"{S3_XML_NAMESPACE}Contents"):
            key = contents.findtext(f"{S3_XML_NAMESPACE}Key")
            if key:
                keys.append(key)
        truncated = root.findtext(f"{S3_XML_NAMESPACE}IsTruncated", default="false")
        token = root.findtext(f"{S3_XML_NAMESPACE}NextContinuationToken")
        if truncated.strip().lower() != "true":
            token = None
        return keys, token
