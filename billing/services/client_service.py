"""
Client Service - owner-scoped client registry.

Client names are unique per owner. Invoices reuse a client by name and
overwrite its contact details (last write wins).
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from billing.models import Client
from billing.validation import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def _contact_fields(data: Dict[str, Any]) -> Dict[str, str]:
    """Every contact field, with missing or null values blanked."""
    return {field: (data.get(field) or "") for field in Client.CONTACT_FIELDS}


class ClientService:

    @staticmethod
    def list_clients(owner) -> QuerySet:
        return Client.objects.filter(owner=owner).order_by("name")

    @staticmethod
    def get_client(owner, client_id: int) -> Client:
        client = Client.objects.filter(owner=owner, id=client_id).first()
        if client is None:
            raise NotFoundError("Client not found")
        return client

    @staticmethod
    def create_client(owner, data: Dict[str, Any]) -> Client:
        fields = _contact_fields(data)
        if Client.objects.filter(owner=owner, name=fields["name"]).exists():
            raise ConflictError("Client with this name already exists")
        try:
            with transaction.atomic():
                client = Client.objects.create(owner=owner, **fields)
        except IntegrityError:
            raise ConflictError("Client with this name already exists")

        logger.info(f"Client {client.id} created by user {owner.id}")
        return client

    @classmethod
    def update_client(cls, owner, client_id: int, data: Dict[str, Any]) -> Client:
        client = cls.get_client(owner, client_id)
        name = data.get("name", client.name)
        if name != client.name and Client.objects.filter(owner=owner, name=name).exists():
            raise ConflictError("Client with this name already exists")

        for field in Client.CONTACT_FIELDS:
            if field in data:
                setattr(client, field, data[field] or "")
        try:
            with transaction.atomic():
                client.save()
        except IntegrityError:
            raise ConflictError("Client with this name already exists")

        logger.info(f"Client {client.id} updated by user {owner.id}")
        return client

    @staticmethod
    def upsert_for_invoice(owner, customer_details: Dict[str, Any]) -> Client:
        """
        Resolve the client an invoice is addressed to.

        Looks the client up by ``(owner, name)``; a new name creates the client,
        an existing one has every contact field overwritten with the incoming
        values. Callers run this inside the invoice write transaction.
        """
        fields = _contact_fields(customer_details)
        client, created = Client.objects.select_for_update().get_or_create(
            owner=owner,
            name=fields["name"],
            defaults=fields,
        )
        if not created:
            for field, value in fields.items():
                setattr(client, field, value)
            client.save()
            logger.info(f"Client {client.id} refreshed from invoice by user {owner.id}")
        else:
            logger.info(f"Client {client.id} created from invoice by user {owner.id}")
        return client
