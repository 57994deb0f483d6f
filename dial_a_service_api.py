"""Dial a Service API client.

A thin wrapper around the REST API for front ends, bots and scripts.
It uses the ``requests`` library and keeps the bearer token obtained
from :meth:`DialAServiceAPI.login` or :meth:`DialAServiceAPI.verify_magic_link`
for subsequent calls.

Every operation returns a tuple ``(data, error)``.  On success ``data``
holds the parsed JSON response and ``error`` is ``None``; on failure
``data`` is ``None`` and ``error`` is a dictionary with the keys
``status_code`` and ``message``.  Callers never need to catch
``requests`` exceptions.

Example::

    api = DialAServiceAPI(base_url="http://localhost:8000")
    api.login("jane@example.com", "secret123")
    session, error = api.me()
    if not error:
        print("continue at", session["redirect_to"])
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Result = Tuple[Optional[Any], Optional[Dict[str, Any]]]


class DialAServiceAPI:
    """Client for the Dial a Service API (version 1)."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        prefix: str = "/api/v1",
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the service, e.g. ``http://localhost:8000``.
            api_key: Optional bearer token to start with.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            prefix: Path prefix of the versioned API.
        """
        self.base_url = base_url.rstrip("/")
        self.prefix = prefix
        self.api_key = api_key
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] | None = None,
        json_body: Any | None = None,
        files: Dict[str, Any] | None = None,
    ) -> Result:
        """Perform an HTTP request to the API.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PUT``, ``PATCH``, ``DELETE``).
            path: Path relative to the API prefix (e.g. ``/jobs``).
            params: Query parameters to include in the request.
            json_body: JSON body to send with the request.
            files: Multipart files for uploads.
        Returns:
            A tuple ``(data, error)``.
        """
        url = f"{self.base_url}{self.prefix}{path}"
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                files=files,
                headers=headers,
                timeout=15,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message: Any = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    if isinstance(err_json, dict):
                        message = err_json.get("detail") or err_json.get("message") or str(err_json)
                    else:
                        message = str(err_json)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            if not isinstance(message, str):
                # Validation errors carry a list of problems.
                message = "; ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in message)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    def _store_token(self, result: Result) -> Result:
        data, error = result
        if data and data.get("access_token"):
            self.api_key = data["access_token"]
        return data, error

    # ------------------------------------------------------------------
    # Authentication and account
    # ------------------------------------------------------------------
    def register(self, email: str, password: str, full_name: Optional[str] = None) -> Result:
        return self._request(
            "POST", "/auth/register", json_body={"email": email, "password": password, "full_name": full_name}
        )

    def login(self, email: str, password: str) -> Result:
        """Sign in with a password and keep the returned token."""
        return self._store_token(
            self._request("POST", "/auth/login", json_body={"email": email, "password": password})
        )

    def request_magic_link(self, email: str) -> Result:
        return self._request("POST", "/auth/magic-link", json_body={"email": email})

    def verify_magic_link(self, token: str) -> Result:
        """Redeem the token from a sign-in link and keep the bearer token."""
        return self._store_token(self._request("POST", "/auth/magic-link/verify", json_body={"token": token}))

    def me(self) -> Result:
        return self._request("GET", "/auth/me")

    def complete_profile(self, full_name: str, phone_number: str, city: str, role: str = "customer") -> Result:
        return self._request(
            "PUT",
            "/account/profile",
            json_body={"full_name": full_name, "phone_number": phone_number, "city": city, "role": role},
        )

    # ------------------------------------------------------------------
    # Provider profile and onboarding forms
    # ------------------------------------------------------------------
    def list_skills(self) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        data, error = self._request("GET", "/skills")
        return data or [], error

    def get_provider_profile(self) -> Result:
        return self._request("GET", "/providers/me")

    def update_provider_profile(self, payload: Dict[str, Any]) -> Result:
        return self._request("PUT", "/providers/me", json_body=payload)

    def update_basic_info(self, years_experience: int, business_name: str, business_email: str) -> Result:
        return self._request(
            "PUT",
            "/providers/me/basic-info",
            json_body={
                "years_experience": years_experience,
                "business_name": business_name,
                "business_email": business_email,
            },
        )

    def update_skills(self, skills: List[str]) -> Result:
        return self._request("PUT", "/providers/me/skills", json_body={"skills": skills})

    def upload_id_document(self, content: bytes, filename: str = "id.jpg", content_type: str = "image/jpeg") -> Result:
        return self._request(
            "POST", "/providers/me/id-document", files={"file": (filename, content, content_type)}
        )

    def upload_profile_picture(
        self, content: bytes, filename: str = "profile.jpg", content_type: str = "image/jpeg"
    ) -> Result:
        return self._request("POST", "/providers/me/picture", files={"file": (filename, content, content_type)})

    def onboarding_state(self) -> Result:
        return self._request("GET", "/onboarding")

    def onboarding_next(self) -> Result:
        return self._request("POST", "/onboarding/next")

    def onboarding_back(self) -> Result:
        return self._request("POST", "/onboarding/back")

    def onboarding_go_to(self, step: int) -> Result:
        return self._request("POST", "/onboarding/goto", json_body={"step": step})

    def complete_onboarding(self) -> Result:
        return self._request("POST", "/onboarding/complete")

    def verification_status(self) -> Result:
        return self._request("GET", "/providers/me/verification")

    def request_verification(self) -> Result:
        return self._request("POST", "/providers/me/verification/request")

    # ------------------------------------------------------------------
    # Dashboards and jobs
    # ------------------------------------------------------------------
    def provider_dashboard(self) -> Result:
        return self._request("GET", "/providers/me/dashboard")

    def available_jobs(self) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        data, error = self._request("GET", "/providers/me/available-jobs")
        return data or [], error

    def calendar(self, day: Optional[str] = None) -> Result:
        params = {"date": day} if day else None
        return self._request("GET", "/providers/me/calendar", params=params)

    def create_job(self, payload: Dict[str, Any]) -> Result:
        return self._request("POST", "/jobs", json_body=payload)

    def my_jobs(self) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        data, error = self._request("GET", "/jobs/mine")
        return data or [], error

    def accept_job(self, job_id: Any) -> Result:
        return self._request("POST", f"/jobs/{job_id}/accept")

    def update_job_status(self, job_id: Any, status: str) -> Result:
        return self._request("POST", f"/jobs/{job_id}/status", json_body={"status": status})

    def rate_job(self, job_id: Any, rating: int) -> Result:
        return self._request("POST", f"/jobs/{job_id}/rating", json_body={"rating": rating})

    def schedule_job(self, payload: Dict[str, Any]) -> Result:
        return self._request("POST", "/jobs/schedule", json_body=payload)

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------
    def list_slots(self, day: str) -> Result:
        return self._request("GET", "/slots", params={"date": day})

    def create_slot(self, payload: Dict[str, Any]) -> Result:
        return self._request("POST", "/slots", json_body=payload)

    def update_slot(self, slot_id: Any, payload: Dict[str, Any]) -> Result:
        return self._request("PATCH", f"/slots/{slot_id}", json_body=payload)

    def delete_slot(self, slot_id: Any) -> Tuple[bool, Optional[Dict[str, Any]]]:
        _, error = self._request("DELETE", f"/slots/{slot_id}")
        return error is None, error

    def list_recurring_slots(self) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        data, error = self._request("GET", "/recurring-slots")
        return data or [], error

    def create_recurring_slot(self, payload: Optional[Dict[str, Any]] = None) -> Result:
        return self._request("POST", "/recurring-slots", json_body=payload or {})

    def update_recurring_slot(self, slot_id: Any, payload: Dict[str, Any]) -> Result:
        return self._request("PATCH", f"/recurring-slots/{slot_id}", json_body=payload)

    def delete_recurring_slot(self, slot_id: Any) -> Tuple[bool, Optional[Dict[str, Any]]]:
        _, error = self._request("DELETE", f"/recurring-slots/{slot_id}")
        return error is None, error

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------
    def pending_providers(self) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        data, error = self._request("GET", "/admin/providers/pending")
        return data or [], error

    def review_provider(self, provider_id: Any, status: str, reason: Optional[str] = None) -> Result:
        return self._request(
            "POST",
            f"/admin/providers/{provider_id}/verification",
            json_body={"status": status, "reason": reason},
        )

    def audit_logs(self, **filters: Any) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        params = {key: value for key, value in filters.items() if value is not None}
        data, error = self._request("GET", "/admin/audit", params=params or None)
        return data or [], error
