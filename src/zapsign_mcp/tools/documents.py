"""Document tools: create, inspect, delete and post-process ZapSign documents."""

from __future__ import annotations

from .base import (
    LANG,
    OBSERVERS,
    SIGNER_ITEM,
    ZapSignTool,
    array_param,
    boolean_param,
    require_non_empty,
    string_param,
)

# Defaults ZapSign expects on every upload-based document creation
UPLOAD_DEFAULTS = {
    "lang": "pt-br",
    "observers": [],
    "disable_signer_emails": False,
    "brand_logo": "",
    "brand_primary_color": "",
    "brand_name": "",
    "folder_path": "/",
    "created_by": "",
    "date_limit_to_sign": None,
    "signature_order_active": False,
    "reminder_every_n_days": 0,
    "allow_refuse_signature": False,
    "disable_signers_get_original_file": False,
}

create_doc_from_upload = ZapSignTool(
    name="create_doc_from_upload",
    description="Create a document from an uploaded DOCX file.",
    method="POST",
    path="/docs/",
    action="creating the document",
    properties={
        "name": string_param("The name of the document."),
        "url_docx": string_param("The URL of the DOCX file to be uploaded."),
        "signers": array_param("An array of signers for the document.", items=SIGNER_ITEM),
        "lang": LANG,
        "disable_signer_emails": boolean_param("Whether to disable emails for signers."),
        "observers": OBSERVERS,
    },
    required=["name", "url_docx", "signers"],
    body=["name", "url_docx", "signers", "lang", "disable_signer_emails", "observers"],
    defaults={"lang": "pt-br", "disable_signer_emails": False, "observers": []},
)

create_doc_from_upload_pdf = ZapSignTool(
    name="create_doc_from_upload_pdf",
    description="Create a document from an uploaded PDF.",
    method="POST",
    path="/docs/",
    action="creating the document",
    properties={
        "name": string_param("The name of the document."),
        "url_pdf": string_param("The URL of the PDF to upload."),
        "signers": array_param("An array of signers for the document.", items=SIGNER_ITEM),
        "lang": LANG,
        "observers": OBSERVERS,
    },
    required=["name", "url_pdf", "signers"],
    body=["name", "url_pdf", "signers", "lang", "observers"],
    defaults=UPLOAD_DEFAULTS,
)

create_doc_from_upload_async = ZapSignTool(
    name="create_doc_from_upload_async",
    description="Create a document from an uploaded PDF asynchronously.",
    method="POST",
    path="/docs/async/",
    action="creating the document",
    properties={
        "name": string_param("The name of the document."),
        "url_pdf": string_param("The URL of the PDF to be uploaded."),
        "signers": array_param("An array of signers for the document.", items=SIGNER_ITEM),
        "lang": LANG,
        "observers": OBSERVERS,
    },
    required=["name", "url_pdf", "signers"],
    body=["name", "url_pdf", "signers", "lang", "observers"],
    defaults={**UPLOAD_DEFAULTS, "signed_file_only_finished": False, "reminder_every_n_days": None},
)

get_docs = ZapSignTool(
    name="get_docs",
    description="Get documents from the Zapsign API.",
    method="GET",
    path="/docs/",
    action="getting documents",
)

detail_doc = ZapSignTool(
    name="detail_doc",
    description="Retrieve details of a document from the Zapsign API.",
    method="GET",
    path="/docs/{doc_token}/",
    action="retrieving document details",
    properties={"doc_token": string_param("The token of the document to retrieve.")},
    required=["doc_token"],
)

delete_doc = ZapSignTool(
    name="delete_doc",
    description="Delete a document using the Zapsign API.",
    method="DELETE",
    path="/docs/{doc_token}/",
    action="deleting the document",
    properties={"doc_token": string_param("The token of the document to be deleted.")},
    required=["doc_token"],
)

add_extra_doc = ZapSignTool(
    name="add_extra_doc",
    description="Add an extra document to Zapsign.",
    method="POST",
    path="/docs/{doc_token}/upload-extra-doc/",
    action="adding the extra document",
    properties={
        "name": string_param("The name of the extra document."),
        "url_pdf": string_param("The URL of the PDF document to upload."),
        "doc_token": string_param("The token of the document the extra document is attached to."),
    },
    required=["doc_token", "name", "url_pdf"],
    body=["name", "url_pdf"],
)

place_signatures = ZapSignTool(
    name="place_signatures",
    description="Place signatures on a document using the Zapsign API.",
    method="POST",
    path="/docs/{doc_token}/place-signatures/",
    action="placing signatures",
    properties={
        "rubricas": array_param("An array of signature definitions."),
        "doc_token": string_param("The token of the document to place signatures on."),
    },
    required=["rubricas", "doc_token"],
    body=["rubricas"],
)

add_time_stamp = ZapSignTool(
    name="add_time_stamp",
    description="Add a time stamp to a document using the Zapsign API.",
    method="POST",
    path="/timestamp/",
    action="adding the time stamp",
    properties={"url": string_param("The URL of the document to be timestamped.")},
    required=["url"],
    body=["url"],
)

reorder_envelope_documents = ZapSignTool(
    name="reorder_envelope_documents",
    description="Reorder documents within an envelope to change their display order.",
    method="PUT",
    path="/envelopes/{envelope_token}/reorder/",
    action="reordering the envelope documents",
    properties={
        "envelope_token": string_param("The token of the envelope containing the documents."),
        "documents_order": array_param(
            "Array of document tokens in the desired display order.", items={"type": "string"}
        ),
    },
    required=["envelope_token", "documents_order"],
    body=["documents_order"],
    prepare=require_non_empty("documents_order"),
)

reprocess_documents_webhooks = ZapSignTool(
    name="reprocess_documents_webhooks",
    description="Reprocess documents and webhooks in the ZapSign system.",
    method="POST",
    path="/reprocess/",
    action="reprocessing documents and webhooks",
    properties={
        "document_token": string_param("The token of the document to reprocess."),
        "webhook_tokens": array_param(
            "Array of webhook tokens to reprocess (optional).", items={"type": "string"}
        ),
        "reason": string_param("Reason for reprocessing (optional)."),
        "force_reprocess": boolean_param("Force reprocessing even if already processed (optional)."),
    },
    required=["document_token"],
    body=["document_token", "webhook_tokens", "reason", "force_reprocess"],
    prepare=require_non_empty("document_token"),
)

TOOLS = [
    create_doc_from_upload,
    create_doc_from_upload_pdf,
    create_doc_from_upload_async,
    get_docs,
    detail_doc,
    delete_doc,
    add_extra_doc,
    place_signatures,
    add_time_stamp,
    reorder_envelope_documents,
    reprocess_documents_webhooks,
]
