"""Declarative ZapSign tool definitions.

Each ZapSign endpoint wrapper is described as data: the tool name and schema,
the HTTP method and path template, and which arguments travel in the body or
the query string. ``ZapSignTool.bind`` turns a definition into the envelope the
tool registry consumes.
"""

from __future__ import annotations

import copy
import logging
import string
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence
from urllib.parse import quote

from ..exceptions import AuthenticationError, ZapSignAPIError

if TYPE_CHECKING:
    from ..services.zapsign_client import ZapSignClient

logger = logging.getLogger(__name__)

# Called with (arguments, client) before the request is built; may mutate
# arguments and raises ValueError to reject the call.
PrepareHook = Callable[[Dict[str, Any], "ZapSignClient"], None]


def string_param(description: str, **extra: Any) -> Dict[str, Any]:
    return {"type": "string", "description": description, **extra}


def boolean_param(description: str) -> Dict[str, Any]:
    return {"type": "boolean", "description": description}


def integer_param(description: str) -> Dict[str, Any]:
    return {"type": "integer", "description": description}


def number_param(description: str) -> Dict[str, Any]:
    return {"type": "number", "description": description}


def array_param(description: str, items: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "array", "description": description}
    if items is not None:
        schema["items"] = dict(items)
    return schema


def object_schema(properties: Mapping[str, Any], required: Sequence[str] = ()) -> Dict[str, Any]:
    return {"type": "object", "properties": dict(properties), "required": list(required)}


class BuiltRequest(NamedTuple):
    method: str
    endpoint: str
    json: Any
    params: Optional[Dict[str, Any]]


@dataclass(frozen=True)
class ZapSignTool:
    """One ZapSign endpoint exposed as an MCP tool."""

    name: str
    description: str
    method: str
    path: str
    action: str
    properties: Mapping[str, Any] = field(default_factory=dict)
    required: Sequence[str] = ()
    body: Sequence[str] = ()
    query: Sequence[str] = ()
    defaults: Mapping[str, Any] = field(default_factory=dict)
    renames: Mapping[str, str] = field(default_factory=dict)
    prepare: Optional[PrepareHook] = None

    @property
    def path_parameters(self) -> List[str]:
        return [name for _, name, _, _ in string.Formatter().parse(self.path) if name]

    @property
    def error_message(self) -> str:
        return f"An error occurred while {self.action}."

    def parameters(self) -> Dict[str, Any]:
        return object_schema(copy.deepcopy(dict(self.properties)), self.required)

    def definition(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters(),
            },
        }

    def build_request(self, arguments: Mapping[str, Any], client: Optional[ZapSignClient] = None) -> BuiltRequest:
        """Map tool arguments onto method, endpoint, JSON body and query.

        Raises:
            ValueError: If a path parameter is empty or the prepare hook rejects the call
        """
        args = dict(arguments)
        if self.prepare is not None:
            self.prepare(args, client)

        segments = {}
        for name in self.path_parameters:
            value = args.get(name)
            if value is None or value == "":
                raise ValueError(f"{name} is required")
            segments[name] = quote(str(value), safe="")
        endpoint = self.path.format(**segments)

        payload = None
        if self.body or self.defaults:
            payload = copy.deepcopy(dict(self.defaults))
            for name in self.body:
                if args.get(name) is not None:
                    payload[self.renames.get(name, name)] = args[name]

        params = None
        if self.query:
            params = {self.renames.get(name, name): args[name] for name in self.query if args.get(name) is not None}

        return BuiltRequest(self.method, endpoint, payload, params or None)

    def error_result(self, details: Any = None, status_code: Optional[int] = None) -> Dict[str, Any]:
        result: Dict[str, Any] = {"error": self.error_message}
        if details is not None:
            result["details"] = details
        if status_code is not None:
            result["status_code"] = status_code
        return result

    def bind(self, client: ZapSignClient) -> Dict[str, Any]:
        """Return the registry envelope with a handler calling ``client``."""

        async def handler(arguments: Dict[str, Any]) -> Any:
            try:
                request = self.build_request(arguments, client)
                return await client.request(
                    request.method, request.endpoint, json=request.json, params=request.params
                )
            except ZapSignAPIError as exc:
                logger.error(f"Error {self.action}: {exc.message} ({exc.context})")
                details = exc.response_data if exc.response_data not in (None, {}, "") else exc.message
                return self.error_result(details, exc.status_code)
            except AuthenticationError as exc:
                logger.error(f"Error {self.action}: {exc}")
                return self.error_result(str(exc))
            except ValueError as exc:
                logger.warning(f"Rejected {self.name} arguments: {exc}")
                return self.error_result(str(exc))

        handler.__name__ = self.name
        handler.__qualname__ = f"ZapSignTool.{self.name}"
        return {"function": handler, "definition": self.definition()}


def require_non_empty(*names: str) -> PrepareHook:
    """Prepare hook rejecting calls where any of ``names`` is empty."""

    def check(arguments: Dict[str, Any], client: Optional[ZapSignClient]) -> None:
        for name in names:
            value = arguments.get(name)
            if value is None or (hasattr(value, "__len__") and len(value) == 0):
                raise ValueError(f"{name} must not be empty")

    return check


# Shared nested schemas

SIGNER_ITEM = object_schema(
    {
        "name": string_param("The name of the signer."),
        "email": string_param("The email of the signer."),
        "auth_mode": string_param("The authentication mode for the signer."),
        "send_automatic_email": boolean_param("Whether to send an automatic email to the signer."),
        "phone_country": string_param("The country code for the signers phone number."),
        "phone_number": string_param("The phone number of the signer."),
        "require_selfie_photo": boolean_param("Whether a selfie photo is required."),
        "require_document_photo": boolean_param("Whether a document photo is required."),
    },
    required=["name"],
)

OBSERVERS = array_param("An array of observer emails.", items=string_param("An observer email."))

LANG = string_param("The language for the document.")


def template_data(description: str, de: str, para: str) -> Dict[str, Any]:
    """Array of ``{de, para}`` replacements used by template endpoints."""
    return array_param(
        description,
        items=object_schema({"de": string_param(de), "para": string_param(para)}, required=["de", "para"]),
    )
