from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from pydantic import BaseModel, Field, field_validator
from pymongo.database import Database

import checkout
import config
from auth import require_admin, require_super_admin
from database import get_db
from receipts import render_receipt
from schemas import Document, OrderIn, OrderStatus, not_null
from shipping import shipping_cost_for
from site_settings import SiteSettingsStore

router = APIRouter(prefix="/orders", tags=["orders"])


class ShippingQuote(BaseModel):
    governorate: Optional[str] = None


class StatusUpdate(BaseModel):
    status: OrderStatus


class OrderUpdate(Document):
    customer_name: Optional[str] = Field(None, min_length=2, max_length=100)
    address: Optional[str] = Field(None, min_length=10, max_length=500)
    notes: Optional[str] = Field(None, max_length=500)
    shipping_cost: Optional[float] = Field(None, ge=0)
    total: Optional[float] = Field(None, ge=0)

    # notes may be cleared; the rest are required on the stored order
    reject_null = field_validator("customer_name", "address", "shipping_cost", "total")(not_null)


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.post("", status_code=201)
def create_order(payload: OrderIn, request: Request, background_tasks: BackgroundTasks,
                 db: Database = Depends(get_db)):
    order = checkout.place_order(
        db,
        payload,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
        schedule=background_tasks.add_task,
    )
    return {"success": True, "data": order}


@router.post("/calculate-shipping")
def calculate_shipping(payload: ShippingQuote):
    return {"success": True, "cost": shipping_cost_for(payload.governorate)}


@router.get("")
def list_orders(status: Optional[OrderStatus] = None, startDate: Optional[datetime] = None,
                endDate: Optional[datetime] = None, db: Database = Depends(get_db),
                admin: Dict[str, Any] = Depends(require_admin)):
    orders = checkout.list_orders(db, status=status.value if status else None,
                                  start_date=startDate, end_date=endDate)
    return {"success": True, "count": len(orders), "data": orders}


@router.get("/{order_id}")
def get_order(order_id: str, db: Database = Depends(get_db), admin: Dict[str, Any] = Depends(require_admin)):
    return {"success": True, "data": checkout.get_order(db, order_id, fields=("title", "images", "price"))}


@router.put("/{order_id}")
def update_order(order_id: str, data: OrderUpdate, db: Database = Depends(get_db),
                 admin: Dict[str, Any] = Depends(require_admin)):
    changes = data.model_dump(by_alias=True, exclude_unset=True)
    return {"success": True, "data": checkout.update_order(db, order_id, changes)}


@router.put("/{order_id}/status")
def update_order_status(order_id: str, data: StatusUpdate, db: Database = Depends(get_db),
                        admin: Dict[str, Any] = Depends(require_admin)):
    order = checkout.update_status(db, order_id, data.status.value, strict=config.STRICT_STATUS_TRANSITIONS)
    return {"success": True, "data": order}


@router.delete("/{order_id}")
def delete_order(order_id: str, db: Database = Depends(get_db),
                 admin: Dict[str, Any] = Depends(require_super_admin)):
    checkout.delete_order(db, order_id)
    return {"success": True, "message": "Order deleted successfully"}


@router.get("/{order_id}/pdf")
def get_order_pdf(order_id: str, db: Database = Depends(get_db), admin: Dict[str, Any] = Depends(require_admin)):
    order = checkout.get_order(db, order_id, fields=("title",))
    settings = SiteSettingsStore(db).get()
    return Response(
        content=render_receipt(order, settings),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=order-{order['id']}.pdf"},
    )
