"""Webhook notifications for published versions."""

import json
from typing import Dict

import requests

from .exceptions import NotificationError
from .protocols import HttpSessionProtocol, LoggerProtocol

HTTP_CREATED = 201
HTTP_UNAUTHORIZED = 401


class NotificationDispatcher:
    """Posts a form-encoded description of each published version."""

    def __init__(
        self,
        session: HttpSessionProtocol,
        url: str,
        api_key: str,
        logger: LoggerProtocol,
        timeout: float = 10.0,
    ):
        self._session = session
        self._url = url
        self._api_key = api_key
        self._logger = logger
        self._timeout = timeout

    def build_payload(
        self,
        version_name: str,
        base_filename: str,
        aspect_group: str,
        raw_metadata: Dict[str, str],
    ) -> Dict[str, str]:
        return {
            "api_key": self._api_key,
            "version": version_name,
            "basename": base_filename,
            "aspect_group": aspect_group,
            "verbose_metadata": json.dumps(raw_metadata, sort_keys=True),
        }

    def notify(
        self,
        version_name: str,
        base_filename: str,
        aspect_group: str,
        raw_metadata: Dict[str, str],
    ) -> None:
        """
        Send the notification for one version.

        201 is success. 401 and any 5xx raise ``NotificationError``.
        Other statuses are logged and tolerated.
        """
        payload = self.build_payload(version_name, base_filename, aspect_group, raw_metadata)
        self._logger.info(f"Notifying {self._url} of {base_filename} {version_name}")

        try:
            response = self._session.post(self._url, data=payload, timeout=self._timeout)
        except requests.RequestException as e:
            raise NotificationError(
                f"Webhook request failed: {e}", version_name=version_name
            ) from e

        status = response.status_code
        if status == HTTP_CREATED:
            self._logger.info(f"Webhook accepted {version_name}", status=status)
        elif status == HTTP_UNAUTHORIZED:
            raise NotificationError(
                "Webhook rejected the API key",
                version_name=version_name,
                status_code=status,
            )
        elif 500 <= status < 600:
            raise NotificationError(
                f"Webhook server error: {response.text[:200]}",
                version_name=version_name,
                status_code=status,
            )
        else:
            # TODO: agree handling of other statuses with the photo API owners
            self._logger.warning(
                f"Unexpected webhook status for {version_name}", status=status
            )
