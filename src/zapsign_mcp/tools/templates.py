"""Template tools: fill ZapSign templates and browse them."""

from __future__ import annotations

from typing import Any, Dict, Optional

from .base import LANG, ZapSignTool, boolean_param, integer_param, string_param, template_data

TEMPLATE_DEFAULTS = {
    "send_automatic_email": False,
    "send_automatic_whatsapp": False,
    "lang": "pt-br",
    "external_id": None,
}

TEMPLATE_BODY = [
    "template_id",
    "signer_name",
    "send_automatic_email",
    "send_automatic_whatsapp",
    "lang",
    "external_id",
    "data",
]

create_doc_from_template = ZapSignTool(
    name="create_doc_from_template",
    description="Create a document from a template using the Zapsign API.",
    method="POST",
    path="/models/create-doc/",
    action="creating the document",
    properties={
        "template_id": string_param("The ID of the template to use."),
        "signer_name": string_param("The name of the signer."),
        "send_automatic_email": boolean_param("Whether to send an automatic email."),
        "send_automatic_whatsapp": boolean_param("Whether to send an automatic WhatsApp message."),
        "lang": LANG,
        "data": template_data(
            "An array of data objects for the document.", de="The key for the data.", para="The value for the data."
        ),
    },
    required=["template_id", "signer_name", "data"],
    body=[name for name in TEMPLATE_BODY if name != "external_id"],
    defaults=TEMPLATE_DEFAULTS,
)

create_doc_from_template_async = ZapSignTool(
    name="create_doc_from_template_async",
    description="Create a document from a template asynchronously using the Zapsign API.",
    method="POST",
    path="/models/create-doc/async/",
    action="creating the document",
    properties={
        "template_id": string_param("The ID of the template to use for the document."),
        "signer_name": string_param("The name of the signer."),
        "send_automatic_email": boolean_param("Whether to send an automatic email."),
        "send_automatic_whatsapp": boolean_param("Whether to send an automatic WhatsApp message."),
        "lang": LANG,
        "external_id": string_param("An optional external ID for tracking."),
        "data": template_data(
            "An array of objects containing data to fill in the template.",
            de="The field name in the template.",
            para="The value to fill in the template.",
        ),
    },
    required=["template_id", "signer_name", "data"],
    body=TEMPLATE_BODY,
    defaults=TEMPLATE_DEFAULTS,
)

add_extra_doc_from_template = ZapSignTool(
    name="add_extra_doc_from_template",
    description="Add an extra document from a template in Zapsign.",
    method="POST",
    path="/models/{doc_token}/upload-extra-doc/",
    action="adding the extra document",
    properties={
        "doc_token": string_param("The token of the document the extra document is attached to."),
        "template_id": string_param("The ID of the template to use."),
        "data": template_data(
            "An array of objects containing the data to be filled in the document.",
            de="The value to fill in the document.",
            para="The field name in the document.",
        ),
    },
    required=["doc_token", "template_id", "data"],
    body=["template_id", "data"],
)

detail_template = ZapSignTool(
    name="detail_template",
    description="Retrieve details of a specific template from Zapsign.",
    method="GET",
    path="/templates/{template_token}",
    action="retrieving template details",
    properties={"template_token": string_param("The token of the template to retrieve details for.")},
    required=["template_token"],
)


def _default_page(arguments: Dict[str, Any], client: Optional[Any]) -> None:
    if arguments.get("page") is None:
        arguments["page"] = 1


list_templates = ZapSignTool(
    name="list_templates",
    description="List templates from the Zapsign API.",
    method="GET",
    path="/templates/",
    action="listing templates",
    properties={"page": integer_param("The page number for pagination.")},
    query=["page"],
    prepare=_default_page,
)

TOOLS = [
    create_doc_from_template,
    create_doc_from_template_async,
    add_extra_doc_from_template,
    detail_template,
    list_templates,
]
