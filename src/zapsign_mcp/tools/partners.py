"""Partner account tools."""

from __future__ import annotations

from .base import ZapSignTool, string_param

PAYMENT_STATUSES = ["paid", "pending", "failed", "cancelled"]

create_partner_account = ZapSignTool(
    name="create_partner_account",
    description="Create a new partner account in the ZapSign system.",
    method="POST",
    path="/partners/",
    action="creating the partner account",
    properties={
        "name": string_param("The name of the partner."),
        "email": string_param("The email address of the partner."),
        "phone": string_param("The phone number of the partner (Brazilian format)."),
        "cpf": string_param("The CPF (Brazilian individual taxpayer number) of the partner."),
        "cnpj": string_param("The CNPJ (Brazilian company taxpayer number) of the partner."),
        "company_name": string_param("The name of the company (if applicable)."),
        "external_id": string_param("External identifier for the partner."),
    },
    required=["name", "email"],
    body=["name", "email", "phone", "cpf", "cnpj", "company_name", "external_id"],
)

update_partner_payment_status = ZapSignTool(
    name="update_partner_payment_status",
    description="Update the payment status of a partner in the ZapSign system.",
    method="PUT",
    path="/partners/{partner_token}/payment-status/",
    action="updating the partner payment status",
    properties={
        "partner_token": string_param("The token of the partner to update."),
        "payment_status": string_param(
            'The new payment status (e.g., "paid", "pending", "failed").', enum=PAYMENT_STATUSES
        ),
        "payment_method": string_param(
            'The payment method used (e.g., "credit_card", "pix", "bank_transfer").'
        ),
        "transaction_id": string_param("The transaction ID from the payment processor (optional)."),
        "notes": string_param("Additional notes about the payment (optional)."),
    },
    required=["partner_token", "payment_status", "payment_method"],
    body=["payment_status", "payment_method", "transaction_id", "notes"],
)

TOOLS = [create_partner_account, update_partner_payment_status]
