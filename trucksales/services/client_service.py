from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from trucksales.core.config import settings
from trucksales.core.errors import NotFoundError, ReferenceConflictError, parse_payload
from trucksales.core.observability import log_event
from trucksales.db.session import atomic, storage_errors
from trucksales.models.client import Client
from trucksales.models.sales import Sale
from trucksales.schemas.client import ClientCreate, ClientOut, ClientUpdate


def client_out(client: Client) -> ClientOut:
    return ClientOut(id=client.id, name=client.name, address=client.address)


@storage_errors("client.get")
def get_client(db: Session, client_id: int) -> Client:
    client = db.get(Client, client_id)
    if not client:
        raise NotFoundError("Client", client_id)
    return client


@storage_errors("client.list")
def list_clients(db: Session, *, search: str | None = None) -> list[Client]:
    stmt = select(Client)
    if search and search.strip():
        needle = search.strip().lower()
        stmt = stmt.where(
            or_(
                func.lower(Client.name).contains(needle),
                func.lower(Client.address).contains(needle),
            )
        )
    return list(db.execute(stmt.order_by(Client.name.asc(), Client.id.asc())).scalars().all())


@storage_errors("client.create")
def create_client(db: Session, payload: ClientCreate | dict[str, Any]) -> Client:
    data = parse_payload(ClientCreate, payload)
    client = Client(name=data.name, address=data.address)
    with atomic(db, "client.create"):
        db.add(client)
    db.refresh(client)
    log_event("client.create", client_id=client.id, name=client.name)
    return client


@storage_errors("client.update")
def update_client(db: Session, client_id: int, payload: ClientUpdate | dict[str, Any]) -> Client:
    data = parse_payload(ClientUpdate, payload)
    client = get_client(db, client_id)

    changes: dict[str, object] = {}
    with atomic(db, "client.update"):
        if data.name is not None:
            client.name = data.name
            changes["name"] = data.name
        if data.address is not None:
            client.address = data.address.strip()
            changes["address"] = client.address
    db.refresh(client)
    log_event("client.update", client_id=client.id, changes=changes)
    return client


@storage_errors("client.delete")
def delete_client(db: Session, client_id: int) -> None:
    client = get_client(db, client_id)
    sales_count = int(
        db.execute(select(func.count(Sale.id)).where(Sale.client_id == client_id)).scalar_one()
    )
    if sales_count and settings.block_delete_with_history:
        raise ReferenceConflictError(
            f"Client {client_id} has {sales_count} recorded sale(s) and cannot be deleted"
        )

    with atomic(db, "client.delete"):
        db.delete(client)
    log_event("client.delete", client_id=client_id, orphaned_sales=sales_count)
