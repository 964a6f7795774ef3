"""Event Manager API client.

A thin wrapper around the REST API served by ``event_manager_api``.
It uses the ``requests`` library and exposes one method per endpoint:

* events: :meth:`list_events`, :meth:`create_event`, :meth:`get_event`,
  :meth:`update_event`, :meth:`delete_event`, :meth:`list_dispatches`
* participants: :meth:`list_participants`, :meth:`add_participant`,
  :meth:`invite_participants`, :meth:`update_participant_status`,
  :meth:`delete_participant`, :meth:`rsvp`
* materials: :meth:`list_materials`, :meth:`upload_material`,
  :meth:`delete_material`, :meth:`download_material`
* feedback: :meth:`list_feedback`, :meth:`submit_feedback`,
  :meth:`request_feedback`

Every method returns a tuple ``(result, error)``.  On success ``error``
is ``None``; on failure ``result`` is empty and ``error`` is a
dictionary with ``status_code`` and ``message``.  The client never
raises for HTTP or network errors.

Authentication uses a bearer token, see ``create_token.py``::

    client = EventManagerClient(base_url="http://localhost:8000", api_key=token)
    events, error = client.list_events()
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Error = Optional[Dict[str, Any]]


class EventManagerClient:
    """Client for the Event Manager REST API."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        api_prefix: str = "/api",
        timeout: int = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the server, e.g. ``https://events.example.com``.
            api_key: Optional bearer token sent in the ``Authorization`` header.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            api_prefix: Path prefix under which the API is mounted.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/") + api_prefix
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _send(
        self,
        method: str,
        path: str,
        *,
        json_body: Any | None = None,
        data: Dict[str, Any] | None = None,
        files: Dict[str, Any] | None = None,
    ) -> Tuple[Optional[requests.Response], Error]:
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                json=json_body,
                data=data,
                files=files,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    message = err_json.get("message") or err_json.get("detail") or str(err_json)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    def _request(self, method: str, path: str, **kwargs: Any) -> Tuple[Optional[Any], Error]:
        """Perform a request and decode the JSON body.

        Returns ``(data, error)``; ``data`` is ``None`` for empty bodies
        such as the 204 answer of a delete.
        """
        response, error = self._send(method, path, **kwargs)
        if error:
            return None, error
        if response.content:
            return response.json(), None
        return None, None

    def _request_list(self, method: str, path: str, **kwargs: Any) -> Tuple[List[Any], Error]:
        data, error = self._request(method, path, **kwargs)
        if error:
            return [], error
        return data if isinstance(data, list) else [], None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def list_events(self) -> Tuple[List[Dict[str, Any]], Error]:
        """Retrieve the events owned by the authenticated user."""
        return self._request_list("GET", "/events")

    def create_event(self, payload: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Error]:
        """Create an event.

        Args:
            payload: ``title``, ``start_date`` and ``end_date`` are
                required; ``description`` and ``location`` optional.
        """
        return self._request("POST", "/events", json_body=payload)

    def get_event(self, event_id: int) -> Tuple[Optional[Dict[str, Any]], Error]:
        """Retrieve an event with its participants and materials."""
        return self._request("GET", f"/events/{event_id}")

    def update_event(self, event_id: int, changes: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Error]:
        return self._request("PATCH", f"/events/{event_id}", json_body=changes)

    def delete_event(self, event_id: int) -> Tuple[bool, Error]:
        _, error = self._request("DELETE", f"/events/{event_id}")
        return error is None, error

    def list_dispatches(self, event_id: int) -> Tuple[List[Dict[str, Any]], Error]:
        """Delivery state of every invitation and feedback request of an event."""
        return self._request_list("GET", f"/events/{event_id}/dispatches")

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------
    def list_participants(self, event_id: int) -> Tuple[List[Dict[str, Any]], Error]:
        return self._request_list("GET", f"/events/{event_id}/participants")

    def add_participant(
        self, event_id: int, email: str, name: str, status: Optional[str] = None
    ) -> Tuple[Optional[Dict[str, Any]], Error]:
        payload: Dict[str, Any] = {"email": email, "name": name}
        if status:
            payload["status"] = status
        return self._request("POST", f"/events/{event_id}/participants", json_body=payload)

    def invite_participants(
        self, event_id: int, invitees: List[Tuple[str, str]]
    ) -> Tuple[Optional[Dict[str, Any]], Error]:
        """Invite several people at once.

        Args:
            event_id: Identifier of the event.
            invitees: ``(email, name)`` pairs.
        Returns:
            A tuple ``(result, error)``; ``result`` holds ``participants``
            and their queued ``dispatches``.
        """
        payload = {
            "emails": [email for email, _ in invitees],
            "names": [name for _, name in invitees],
        }
        return self._request("POST", f"/events/{event_id}/participants/invite", json_body=payload)

    def update_participant_status(
        self, participant_id: int, status: str
    ) -> Tuple[Optional[Dict[str, Any]], Error]:
        return self._request("PUT", f"/participants/{participant_id}", json_body={"status": status})

    def delete_participant(self, participant_id: int) -> Tuple[bool, Error]:
        _, error = self._request("DELETE", f"/participants/{participant_id}")
        return error is None, error

    def rsvp(self, participant_id: int, decision: str) -> Tuple[Optional[Dict[str, Any]], Error]:
        """Confirm or decline an invitation (``decision`` is ``confirm`` or ``decline``)."""
        return self._request("POST", f"/rsvp/{participant_id}/{decision}")

    # ------------------------------------------------------------------
    # Materials
    # ------------------------------------------------------------------
    def list_materials(self, event_id: int) -> Tuple[List[Dict[str, Any]], Error]:
        return self._request_list("GET", f"/events/{event_id}/materials")

    def upload_material(
        self,
        event_id: int,
        name: str,
        fileobj: BinaryIO,
        filename: str,
        content_type: str = "application/octet-stream",
    ) -> Tuple[Optional[Dict[str, Any]], Error]:
        """Upload a file as a material of the event."""
        return self._request(
            "POST",
            f"/events/{event_id}/materials",
            data={"name": name},
            files={"file": (filename, fileobj, content_type)},
        )

    def delete_material(self, material_id: int) -> Tuple[bool, Error]:
        _, error = self._request("DELETE", f"/materials/{material_id}")
        return error is None, error

    def download_material(self, material_id: int) -> Tuple[Optional[bytes], Error]:
        """Download the raw bytes of a material."""
        response, error = self._send("GET", f"/materials/{material_id}/download")
        if error:
            return None, error
        return response.content, None

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------
    def list_feedback(self, event_id: int) -> Tuple[List[Dict[str, Any]], Error]:
        return self._request_list("GET", f"/events/{event_id}/feedback")

    def submit_feedback(
        self,
        event_id: int,
        participant_id: int,
        rating: Optional[int] = None,
        comments: Optional[str] = None,
    ) -> Tuple[Optional[Dict[str, Any]], Error]:
        """Submit feedback for a participant.  Only the given fields are sent."""
        payload: Dict[str, Any] = {"participant_id": participant_id}
        if rating is not None:
            payload["rating"] = rating
        if comments is not None:
            payload["comments"] = comments
        return self._request("POST", f"/events/{event_id}/feedback", json_body=payload)

    def request_feedback(self, event_id: int) -> Tuple[Optional[Dict[str, Any]], Error]:
        return self._request("POST", f"/events/{event_id}/feedback/request")
