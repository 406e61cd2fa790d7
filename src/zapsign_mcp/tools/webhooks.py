"""Webhook tools."""

from __future__ import annotations

from typing import Any, Dict, Optional

from .base import ZapSignTool, array_param, number_param, object_schema, string_param

WEBHOOK_HEADER_ITEM = object_schema(
    {
        "name": string_param("The name of the header."),
        "value": string_param("The value of the header."),
    },
    required=["name", "value"],
)

create_webhook = ZapSignTool(
    name="create_webhook",
    description="Create a webhook in Zapsign.",
    method="POST",
    path="/user/company/webhook/",
    action="creating the webhook",
    properties={
        "url": string_param("The URL to which the webhook will send notifications."),
        "type": string_param("The type of event that triggers the webhook."),
        "headers": array_param("Optional headers to include in the webhook request.", items=WEBHOOK_HEADER_ITEM),
    },
    required=["url", "type"],
    body=["url", "type", "headers"],
    defaults={"headers": []},
)

delete_webhook = ZapSignTool(
    name="delete_webhook",
    description="Delete a webhook from the Zapsign API.",
    method="DELETE",
    path="/user/company/webhook/delete/",
    action="deleting the webhook",
    properties={"webhook_id": string_param("The ID of the webhook to be deleted.")},
    required=["webhook_id"],
    body=["webhook_id"],
    renames={"webhook_id": "id"},
)


def _default_authorization_header(arguments: Dict[str, Any], client: Optional[Any]) -> None:
    if arguments.get("headers"):
        return
    api_key = client.auth.get_api_key() if client is not None else None
    if not api_key:
        raise ValueError("headers are required when no API key is configured")
    arguments["headers"] = [{"name": "Authorization", "value": f"Bearer {api_key}"}]


create_webhook_header = ZapSignTool(
    name="create_webhook_header",
    description="Create a webhook header in the Zapsign API.",
    method="POST",
    path="/user/company/webhook/header/",
    action="creating the webhook header",
    properties={
        "webhook_id": number_param("The ID of the webhook to create the header for."),
        "headers": array_param(
            "Headers to attach to the webhook (defaults to an Authorization bearer header).",
            items=WEBHOOK_HEADER_ITEM,
        ),
    },
    required=["webhook_id"],
    body=["webhook_id", "headers"],
    renames={"webhook_id": "id"},
    prepare=_default_authorization_header,
)

delete_webhook_header = ZapSignTool(
    name="delete_webhook_header",
    description="Delete a webhook header.",
    method="DELETE",
    path="/user/company/webhook/header/delete/",
    action="deleting the webhook header",
    properties={"id": string_param("The ID of the webhook header to delete.")},
    required=["id"],
    body=["id"],
)

TOOLS = [create_webhook, delete_webhook, create_webhook_header, delete_webhook_header]
