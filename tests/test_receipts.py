import pytest

import checkout
from receipts import footer_lines, money, payment_label, receipt_totals, render_receipt, short_order_id
from shipping import Governorate
from site_settings import SiteSettingsStore


@pytest.fixture()
def order(db, make_product, order_in):
    shirt = make_product(title="قميص كتان", price=100.0)
    cap = make_product(title="Cap", price=50.0)
    payload = order_in((shirt, 2), (cap, 1), governorate=Governorate.ALEXANDRIA.value,
                       customerName="عمر خالد", notes="Ring twice")
    return checkout.place_order(db, payload)


class TestFormatting:
    def test_money(self):
        assert money(310) == "310 EGP"
        assert money(99.5) == "99.5 EGP"
        assert money(0.75) == "0.75 EGP"

    def test_short_order_id(self):
        assert short_order_id({"id": "65f0c3a1b2c3d4e5f6a7b8c9"}) == "A7B8C9"

    def test_payment_label(self):
        assert payment_label("cash-on-delivery") == "Cash on Delivery"
        assert payment_label("wallet-transfer") == "Wallet Transfer"

    def test_totals_come_from_snapshots(self, order):
        assert receipt_totals(order) == {"subtotal": 250.0, "shipping": 75, "total": 325.0}


class TestFooter:
    def test_only_thanks_when_no_contact(self):
        assert footer_lines({"siteName": "RAHHALAH"}) == ["Thank you for shopping | Rahhalah"]

    def test_contact_and_social_lines(self):
        lines = footer_lines({
            "siteName": "RAHHALAH",
            "email": "hello@rahhalah.com",
            "phone": "01012345678",
            "instagram": "@rahhalah",
        })

        assert lines[1] == "Email: hello@rahhalah.com  |  Tel: 01012345678"
        assert lines[2] == "IG: @rahhalah"


class TestRender:
    def test_pdf_bytes(self, db, order):
        pdf = render_receipt(order, SiteSettingsStore(db).get())

        assert pdf.startswith(b"%PDF")
        assert len(pdf) > 1000

    def test_deleted_product_renders_placeholder(self, db, order):
        db["product"].delete_many({})
        reloaded = checkout.get_order(db, order["id"], fields=("title",))

        assert reloaded["items"][0]["product"] is None
        assert render_receipt(reloaded, {}).startswith(b"%PDF")

    def test_many_items_break_pages(self, db, make_product, order_in):
        products = [make_product(title=f"Item {n}", price=10.0) for n in range(40)]
        placed = checkout.place_order(db, order_in(*[(pid, 1) for pid in products]))

        assert render_receipt(placed, {}).startswith(b"%PDF")
