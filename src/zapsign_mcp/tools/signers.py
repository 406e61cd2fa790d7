"""Signer tools."""

from __future__ import annotations

from .base import ZapSignTool, array_param, require_non_empty, string_param

add_signer = ZapSignTool(
    name="add_signer",
    description="Add a signer to a document in Zapsign.",
    method="POST",
    path="/docs/{doc_token}/add-signer/",
    action="adding the signer",
    properties={
        "doc_token": string_param("The token of the document to which the signer will be added."),
        "name": string_param("The name of the signer to be added."),
    },
    required=["doc_token", "name"],
    body=["name"],
)

detail_signer = ZapSignTool(
    name="detail_signer",
    description="Retrieve details of a signer from the API.",
    method="GET",
    path="/signers/{signer_token}/",
    action="retrieving signer details",
    properties={"signer_token": string_param("The token of the signer whose details are to be retrieved.")},
    required=["signer_token"],
)

update_signer = ZapSignTool(
    name="update_signer",
    description="Update a signer in the Zapsign API.",
    method="POST",
    path="/signers/{signer_token}/",
    action="updating the signer",
    properties={
        "signer_token": string_param("The token of the signer to be updated."),
        "name": string_param("The new name for the signer."),
    },
    required=["signer_token", "name"],
    body=["name"],
)

delete_signer = ZapSignTool(
    name="delete_signer",
    description="Delete a signer from the API.",
    method="DELETE",
    path="/signer/{signer_to_remove_token}/remove/",
    action="deleting the signer",
    properties={"signer_to_remove_token": string_param("The token of the signer to be removed.")},
    required=["signer_to_remove_token"],
)

sign_in_batch = ZapSignTool(
    name="sign_in_batch",
    description="Sign in a batch using the Zapsign API.",
    method="POST",
    path="/sign/",
    action="signing in batch",
    properties={
        "user_token": string_param("The user token for authentication."),
        "signer_tokens": array_param("An array of signer tokens.", items={"type": "string"}),
    },
    required=["user_token", "signer_tokens"],
    body=["user_token", "signer_tokens"],
    prepare=require_non_empty("signer_tokens"),
)

TOOLS = [add_signer, detail_signer, update_signer, delete_signer, sign_in_batch]
