"""DocuSeal e-signature provider integration."""

import logging
from typing import Any

import httpx
import pydantic

from hrms_api.exceptions import (
    DocumentProviderError,
    HRMSError,
    NotFoundError,
    UnauthorizedError,
)
from hrms_api.models.domain.submission import Submission, Submitter

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = {
    "subject": "Form Completion Required",
    "body": "Please complete and sign this form at your earliest convenience.",
}

# Keys under which DocuSeal has been observed to return the submission id
_ID_KEYS = ("id", "uuid", "submission_uuid", "submission_id")


def _first(*values: Any) -> Any:
    """Return the first truthy value, or None."""
    for value in values:
        if value:
            return value
    return None


def _submission_candidates(raw: Any) -> list[dict[str, Any]]:
    """Every place a submission object may be nested, most specific last.

    Covers the flat shape, ``submission``, ``data``, ``data.submission`` and
    the first entry of a ``submissions`` list.
    """
    if not isinstance(raw, dict):
        return []
    candidates = [raw]
    if isinstance(raw.get("submission"), dict):
        candidates.append(raw["submission"])
    data = raw.get("data")
    if isinstance(data, dict):
        candidates.append(data)
        if isinstance(data.get("submission"), dict):
            candidates.append(data["submission"])
    submissions = raw.get("submissions")
    if isinstance(submissions, list) and submissions and isinstance(submissions[0], dict):
        candidates.append(submissions[0])
    return candidates


def _normalize_values(values: Any) -> dict[str, Any]:
    """Submitter values as a field -> value mapping."""
    if isinstance(values, dict):
        return values
    if isinstance(values, list):
        # [{"field": "EmpName", "value": "Jane"}, ...]
        return {
            item["field"]: item.get("value")
            for item in values
            if isinstance(item, dict) and item.get("field")
        }
    return {}


def normalize_submitter(raw: dict[str, Any]) -> Submitter:
    """Convert one raw submitter row to canonical form.

    The canonical ``id`` is the URL token (slug when present); the numeric
    DocuSeal id is kept in ``submitter_id`` for API calls.
    """
    raw_id = raw.get("id")
    slug = raw.get("slug")
    return Submitter(
        id=str(slug or raw_id or ""),
        submitter_id=str(raw_id) if raw_id is not None else None,
        slug=slug,
        email=raw.get("email") or "",
        name=raw.get("name"),
        phone=raw.get("phone") or None,
        role=raw.get("role"),
        status=raw.get("status") or "sent",
        embed_src=raw.get("embed_src"),
        sent_at=raw.get("sent_at") or None,
        opened_at=raw.get("opened_at") or None,
        completed_at=raw.get("completed_at") or None,
        values=_normalize_values(raw.get("values")),
    )


def normalize_submission(raw: Any, fallback_template_id: str | None = None) -> Submission:
    """Parse any known DocuSeal submission response into a :class:`Submission`.

    Accepted shapes: a flat object; an object nested under ``submission``,
    ``data`` or ``data.submission``; a ``submissions`` list; or a bare list
    of submitter rows each carrying ``submission_id``/``submission_uuid``.

    Args:
        raw: Decoded JSON body
        fallback_template_id: Template id to use when the body has none

    Returns:
        Canonical submission

    Raises:
        DocumentProviderError: If no submission id can be found or a field
            cannot be parsed
    """
    candidates = _submission_candidates(raw)

    submission_id = None
    for candidate in candidates:
        submission_id = _first(*(candidate.get(key) for key in _ID_KEYS))
        if submission_id:
            break

    raw_submitters: list[Any] = []
    if submission_id is None and isinstance(raw, list) and raw and isinstance(raw[0], dict):
        first_row = raw[0]
        submission_id = _first(first_row.get("submission_uuid"), first_row.get("submission_id"))
        if submission_id:
            raw_submitters = raw

    if not submission_id:
        preview = list(raw.keys()) if isinstance(raw, dict) else type(raw).__name__
        logger.error(f"DocuSeal returned no submission id (shape: {preview})")
        raise DocumentProviderError("DocuSeal returned no submission id")

    if not raw_submitters:
        for candidate in candidates:
            if isinstance(candidate.get("submitters"), list) and candidate["submitters"]:
                raw_submitters = candidate["submitters"]
                break

    def pick(key: str) -> Any:
        return _first(*(candidate.get(key) for candidate in candidates))

    try:
        return Submission(
            id=str(submission_id),
            template_id=str(_first(pick("template_id"), fallback_template_id) or "") or None,
            status=pick("status") or "sent",
            submitters=[
                normalize_submitter(row) for row in raw_submitters if isinstance(row, dict)
            ],
            documents_url=_first(pick("documents_url"), pick("combined_document_url")),
            completed_at=pick("completed_at"),
        )
    except pydantic.ValidationError as e:
        logger.error(
            f"DocuSeal submission {submission_id} could not be parsed ({e.error_count()} error(s))"
        )
        raise DocumentProviderError(
            "DocuSeal returned an unparseable submission", {"submission_id": str(submission_id)}
        ) from e


class DocuSealProvider:
    """DocuSeal REST API client.

    One ``httpx.AsyncClient`` is held per instance. Every request carries the
    configured timeout, and cancelling the awaiting task aborts the request.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.docuseal.co",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize DocuSeal provider.

        Args:
            api_key: DocuSeal API token
            base_url: API base URL (cloud or self-hosted)
            timeout: Per-request timeout in seconds
            transport: Optional transport, used by tests to mock the API
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"X-Auth-Token": api_key, "Accept": "application/json"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        """Whether an API key is present."""
        return bool(self.api_key)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _request(self, method: str, url: str, action: str, **kwargs: Any) -> httpx.Response:
        """Send a request and map failures to domain errors.

        Raises:
            UnauthorizedError: On 401/403
            NotFoundError: On 404
            DocumentProviderError: On any other failure, including timeouts
        """
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise DocumentProviderError(f"DocuSeal timed out while trying to {action}") from e
        except httpx.HTTPError as e:
            raise DocumentProviderError(f"DocuSeal is unreachable while trying to {action}") from e

        if response.status_code in (401, 403):
            raise UnauthorizedError(
                "DocuSeal rejected the API key",
                {"action": action, "status": response.status_code},
            )
        if response.status_code == 404:
            raise NotFoundError(f"DocuSeal resource not found while trying to {action}")
        if response.is_error:
            logger.error(f"DocuSeal API error ({response.status_code}) while trying to {action}")
            raise DocumentProviderError(
                f"Failed to {action}: {response.status_code} {response.text[:200]}",
                upstream_status=response.status_code,
            )
        return response

    async def test_connection(self) -> bool:
        """Test DocuSeal API connection.

        Returns:
            True if the API accepted the key
        """
        try:
            await self._request("GET", "/templates", "test connection", params={"limit": 1})
            return True
        except HRMSError as e:
            logger.warning(f"DocuSeal connection test failed: {e.code}")
            return False

    async def list_templates(self) -> list[dict[str, Any]]:
        """Fetch all templates.

        Returns:
            Raw template dicts
        """
        response = await self._request("GET", "/templates", "fetch templates")
        data = response.json()
        if isinstance(data, list):
            return data
        return data.get("data") or []

    async def create_submission(
        self,
        template_id: str,
        submitters: list[dict[str, Any]],
        send_email: bool = True,
        message: dict[str, str] | None = None,
    ) -> Submission:
        """Create a submission for a template.

        Args:
            template_id: DocuSeal template id
            submitters: Submitter payloads in signing order
            send_email: Let DocuSeal e-mail the signers
            message: E-mail subject and body

        Returns:
            Normalized submission
        """
        payload = {
            "template_id": int(template_id) if str(template_id).isdigit() else template_id,
            "send_email": send_email,
            "submitters": submitters,
            "message": message or DEFAULT_MESSAGE,
        }
        response = await self._request("POST", "/submissions", "create submission", json=payload)
        return normalize_submission(response.json(), fallback_template_id=str(template_id))

    async def get_submission(self, submission_id: str) -> Submission:
        """Get a submission's current state.

        Returns:
            Normalized submission
        """
        response = await self._request("GET", f"/submissions/{submission_id}", "get submission")
        return normalize_submission(response.json())

    async def remind_submission(self, submission_id: str, submitter_id: str | None = None) -> None:
        """Ask DocuSeal to re-send signing e-mails.

        Args:
            submission_id: Submission id
            submitter_id: Only remind this submitter, otherwise all pending ones
        """
        body: dict[str, Any] = {}
        if submitter_id:
            body["submitter_id"] = int(submitter_id) if submitter_id.isdigit() else submitter_id
        await self._request(
            "POST", f"/submissions/{submission_id}/remind", "send reminder", json=body
        )

    async def list_documents(self, submission_id: str) -> list[dict[str, Any]]:
        """List the signed documents of a submission.

        Returns:
            Dicts with at least ``name`` and ``url``
        """
        response = await self._request(
            "GET", f"/submissions/{submission_id}/documents", "fetch document list"
        )
        data = response.json()
        if isinstance(data, list):
            return data
        return data.get("documents") or []

    async def download_document(self, url: str) -> bytes:
        """Download a document by its (absolute or API-relative) URL."""
        response = await self._request("GET", url, "download document")
        return response.content
