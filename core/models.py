# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# Three shapes flow through the server:
#
#   Channel   — a destination owned by Fastalert.  We only ever READ these
#               and pass them through, so it's a TypedDict describing the
#               JSON record rather than a class we construct.
#   Message   — an outbound notification, built from tool arguments for a
#               single request.  Validation happens here, before any HTTP
#               call is made.
#   ApiError  — a normalized upstream failure.  It is a VALUE returned by
#               the client, not an exception: the adapter checks for it and
#               formats it like any other result.
#
# WIRE NAMES:
#   The API uses a hyphenated "channel-uuid" key, which can't be a Python
#   attribute.  Message stores it as channel_uuid and maps it back in
#   to_payload() / from_arguments().
# =============================================================================

import json
from dataclasses import dataclass, field
from typing import Any, Optional, TypedDict

# Actions a message can carry, in the order the API documents them.
MESSAGE_ACTIONS = ("call", "email", "website", "image")


class _ChannelRequired(TypedDict):
    name: str


class Channel(_ChannelRequired, total=False):
    uuid: str
    subscriber: str


# -----------------------------------------------------------------------------
# Message — one notification sent to one or more channels
# -----------------------------------------------------------------------------
@dataclass
class Message:
    """An outbound notification.

    Only channel_uuid, title and content are required.  The optional fields
    are left out of the request body entirely when unset.
    """

    channel_uuid: list[str] = field(default_factory=list)
    title: str = ""
    content: str = ""
    action: Optional[str] = None       # one of MESSAGE_ACTIONS
    action_value: Optional[str] = None  # phone number, address, URL, ...
    image: Optional[str] = None        # URL or encoded binary
    id: Optional[str] = None

    @classmethod
    def from_arguments(cls, arguments: Optional[dict[str, Any]]) -> "Message":
        """Validate raw tool arguments and build a Message.

        Raises:
            ValueError: a required field is missing, channel-uuid is empty
                or not a list of strings, or action is not a known action.
        """
        args = arguments or {}

        channel_uuid = args.get("channel-uuid")
        if not isinstance(channel_uuid, list) or not channel_uuid:
            raise ValueError("'channel-uuid' must be a non-empty list of channel UUIDs")
        if not all(isinstance(uuid, str) for uuid in channel_uuid):
            raise ValueError("'channel-uuid' must contain only strings")

        for required in ("title", "content"):
            if not isinstance(args.get(required), str):
                raise ValueError(f"'{required}' is required and must be a string")

        action = args.get("action")
        if action is not None and action not in MESSAGE_ACTIONS:
            raise ValueError(
                f"'action' must be one of {', '.join(MESSAGE_ACTIONS)}, got {action!r}"
            )

        for optional in ("action_value", "image", "id"):
            value = args.get(optional)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"'{optional}' must be a string")

        return cls(
            channel_uuid=list(channel_uuid),
            title=args["title"],
            content=args["content"],
            action=action,
            action_value=args.get("action_value"),
            image=args.get("image"),
            id=args.get("id"),
        )

    def to_payload(self) -> dict[str, Any]:
        """Request body for POST /send-message."""
        payload: dict[str, Any] = {
            "channel-uuid": list(self.channel_uuid),
            "title": self.title,
            "content": self.content,
        }
        for key in ("action", "action_value", "image", "id"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


# -----------------------------------------------------------------------------
# ApiError — the ONE shape every upstream failure is normalized into
# -----------------------------------------------------------------------------
VALIDATION_STATUS = 422
VALIDATION_CODE = "VALIDATION_ERROR"
VALIDATION_FALLBACK = "Validation error occurred"
GENERIC_FALLBACK = "API request failed"


def _present(value: Any) -> bool:
    # Empty strings, zero, False and None don't count as a detail.
    # Empty dicts/lists still count.
    if value is None or value is False or value == "":
        return False
    if isinstance(value, (int, float)) and value == 0:
        return False
    return True


def _get(mapping: Any, *keys: str) -> Any:
    """Walk nested dicts, returning None as soon as a level is missing."""
    current = mapping
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


@dataclass
class ApiError:
    message: str
    code: Optional[str] = None
    status: Optional[int] = None

    def __str__(self) -> str:
        return self.message

    @classmethod
    def from_response(cls, status: Optional[int], body: Any) -> "ApiError":
        """Normalize a failed HTTP response.

        Args:
            status: HTTP status code of the response.
            body: Decoded JSON body, or None when there was no (JSON) body.

        A 422 becomes a validation error whose message is built from the
        most specific detail available: body.errors, then body.fault.detail,
        then body.message.  Non-string details are rendered as JSON.
        Any other status is read as a Fastalert fault body.
        """
        if status == VALIDATION_STATUS:
            detail = VALIDATION_FALLBACK
            for candidate in (
                _get(body, "errors"),
                _get(body, "fault", "detail"),
                _get(body, "message"),
            ):
                if _present(candidate):
                    detail = candidate
                    break

            # Strings are used verbatim; anything else renders as JSON text
            # (true, 5, {...}).
            if not isinstance(detail, str):
                detail = json.dumps(detail, indent=2, ensure_ascii=False)
            return cls(
                message=f"Validation Error: {detail}",
                code=VALIDATION_CODE,
                status=VALIDATION_STATUS,
            )

        faultstring = _get(body, "fault", "faultstring")
        errorcode = _get(body, "fault", "detail", "errorcode")
        return cls(
            message=str(faultstring) if _present(faultstring) else GENERIC_FALLBACK,
            code=str(errorcode) if _present(errorcode) else None,
            status=status,
        )
