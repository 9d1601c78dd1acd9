"""
HTTP surface: auth, status codes and error bodies
"""
import uuid
from decimal import Decimal

import pytest

from invoicer.config import settings


@pytest.fixture
def stock_id(client, auth_headers):
    r = client.post("/api/stock", json={"name": "Widget", "price": "100.00", "quantity": 10}, headers=auth_headers)
    assert r.status_code == 201
    return r.json()["id"]


def _create_invoice(client, headers, stock_id, quantity=3, discount=10):
    return client.post(
        "/api/invoices",
        json={
            "customer_name": "Asha",
            "customer_contact": "9876543210",
            "discount": discount,
            "items": [{"stock_item_id": stock_id, "quantity": quantity}],
        },
        headers=headers,
    )


class TestAuth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"

    def test_missing_token(self, client):
        assert client.get("/api/stock").status_code == 401

    def test_bad_token(self, client):
        r = client.get("/api/stock", headers={"Authorization": "Bearer not-a-jwt"})
        assert r.status_code == 401


class TestStockRoutes:
    def test_crud(self, client, auth_headers, stock_id):
        r = client.get(f"/api/stock/{stock_id}", headers=auth_headers)
        assert r.status_code == 200
        assert Decimal(r.json()["price"]) == Decimal("100.00")

        r = client.patch(f"/api/stock/{stock_id}", json={"quantity": 4}, headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["quantity"] == 4
        assert r.json()["name"] == "Widget"

        assert len(client.get("/api/stock", headers=auth_headers).json()) == 1
        assert client.delete(f"/api/stock/{stock_id}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/stock/{stock_id}", headers=auth_headers).status_code == 404

    def test_invalid_price(self, client, auth_headers):
        r = client.post("/api/stock", json={"name": "Free", "price": "0", "quantity": 1}, headers=auth_headers)
        assert r.status_code == 400
        assert r.json()["error"] == "validation_error"

    def test_decrement(self, client, auth_headers, stock_id):
        r = client.post(f"/api/stock/{stock_id}/decrement", json={"amount": 4}, headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["quantity"] == 6
        r = client.post(f"/api/stock/{stock_id}/decrement", json={"amount": 7}, headers=auth_headers)
        assert r.status_code == 409
        assert r.json()["available"] == 6

    def test_other_owner_gets_404(self, client, other_auth_headers, stock_id):
        assert client.get(f"/api/stock/{stock_id}", headers=other_auth_headers).status_code == 404
        assert client.get("/api/stock", headers=other_auth_headers).json() == []


class TestInvoiceRoutes:
    def test_create(self, client, auth_headers, stock_id):
        r = _create_invoice(client, auth_headers, stock_id)
        assert r.status_code == 201
        body = r.json()
        assert Decimal(body["subtotal"]) == Decimal("300.00")
        assert Decimal(body["discount_amount"]) == Decimal("30.00")
        assert Decimal(body["total"]) == Decimal("270.00")
        assert body["items"][0]["name"] == "Widget"
        stock = client.get(f"/api/stock/{stock_id}", headers=auth_headers).json()
        assert stock["quantity"] == 7

    def test_insufficient_stock(self, client, auth_headers, stock_id):
        r = _create_invoice(client, auth_headers, stock_id, quantity=11)
        assert r.status_code == 409
        body = r.json()
        assert body["error"] == "insufficient_stock"
        assert (body["item_id"], body["available"], body["requested"]) == (stock_id, 10, 11)
        assert body["stage"] == "reserving"
        assert client.get("/api/invoices", headers=auth_headers).json() == []

    def test_discount_out_of_range(self, client, auth_headers, stock_id):
        r = _create_invoice(client, auth_headers, stock_id, discount=150)
        assert r.status_code == 400
        assert r.json()["error"] == "validation_error"

    def test_empty_items(self, client, auth_headers):
        r = client.post(
            "/api/invoices",
            json={"customer_name": "A", "customer_contact": "1", "items": []},
            headers=auth_headers,
        )
        assert r.status_code == 400

    def test_list_search_get_delete(self, client, auth_headers, other_auth_headers, stock_id):
        invoice_id = _create_invoice(client, auth_headers, stock_id).json()["id"]
        assert len(client.get("/api/invoices", params={"search": "ash"}, headers=auth_headers).json()) == 1
        assert client.get("/api/invoices", params={"search": "zzz"}, headers=auth_headers).json() == []
        assert client.get(f"/api/invoices/{invoice_id}", headers=other_auth_headers).status_code == 404
        assert client.get(f"/api/invoices/{invoice_id}", headers=auth_headers).status_code == 200
        assert client.delete(f"/api/invoices/{invoice_id}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/invoices/{invoice_id}", headers=auth_headers).status_code == 404

    def test_unknown_invoice(self, client, auth_headers):
        r = client.get(f"/api/invoices/{uuid.uuid4()}", headers=auth_headers)
        assert r.status_code == 404
        assert r.json()["error"] == "not_found"

    def test_pdf(self, client, auth_headers, stock_id):
        invoice_id = _create_invoice(client, auth_headers, stock_id).json()["id"]
        r = client.get(f"/api/invoices/{invoice_id}/pdf", headers=auth_headers)
        assert r.status_code == 200
        assert r.headers["content-type"] == "application/pdf"
        assert f'filename="invoice-INV-{invoice_id[-8:]}.pdf"' in r.headers["content-disposition"]
        assert r.content.startswith(b"%PDF")

        r = client.get(f"/api/invoices/{invoice_id}/pdf", params={"preview": True}, headers=auth_headers)
        assert 'filename="invoice-preview-' in r.headers["content-disposition"]

    def test_reconcile(self, client, auth_headers, stock_id):
        _create_invoice(client, auth_headers, stock_id)
        r = client.post("/api/invoices/reconcile", headers=auth_headers)
        assert r.status_code == 200
        assert r.json() == {"removed": 0, "invoice_ids": []}


class TestBrandingRoutes:
    def test_defaults_and_update(self, client, auth_headers):
        r = client.get("/api/branding", headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["primary_color"] == "#2563EB"
        r = client.put("/api/branding", json={"primary_color": "#10b981", "template_id": "classic"},
                       headers=auth_headers)
        assert r.status_code == 200
        assert (r.json()["primary_color"], r.json()["template_id"]) == ("#10B981", "classic")
        r = client.put("/api/branding", json={"primary_color": "green"}, headers=auth_headers)
        assert r.status_code == 400

    def test_template_settings_camel_case(self, client, auth_headers):
        r = client.get("/api/branding/template-settings", headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["invoiceNumberPrefix"] == "INV-"
        r = client.put("/api/branding/template-settings",
                       json={"invoiceNumberPrefix": "ACME-", "fontSize": "large"}, headers=auth_headers)
        assert r.status_code == 200
        body = client.get("/api/branding/template-settings", headers=auth_headers).json()
        assert (body["invoiceNumberPrefix"], body["fontSize"], body["showFooter"]) == ("ACME-", "large", True)

        r = client.put("/api/branding/template-settings", json={"fontSize": "huge"}, headers=auth_headers)
        assert r.status_code == 400

    def test_templates(self, client, auth_headers):
        r = client.get("/api/branding/templates", headers=auth_headers)
        assert [t["id"] for t in r.json()] == ["modern", "classic", "minimal"]

    def test_logo_bad_type(self, client, auth_headers):
        r = client.post("/api/branding/logo", files={"file": ("logo.gif", b"GIF89a", "image/gif")},
                        headers=auth_headers)
        assert r.status_code == 400

    def test_logo_storage_unconfigured(self, client, auth_headers, png_bytes, monkeypatch):
        monkeypatch.setattr(settings, "SUPABASE_URL", "")
        r = client.post("/api/branding/logo", files={"file": ("logo.png", png_bytes, "image/png")},
                        headers=auth_headers)
        assert r.status_code == 503
        assert r.json()["error"] == "persistence_error"


class TestCompanyProfileRoutes:
    def test_absent_then_saved(self, client, auth_headers):
        assert client.get("/api/company-profile", headers=auth_headers).status_code == 404
        assert client.put("/api/company-profile", json={"company_phone": "1"},
                          headers=auth_headers).status_code == 400
        r = client.put("/api/company-profile", json={"company_name": "Acme", "website": "acme.test"},
                       headers=auth_headers)
        assert r.status_code == 200
        body = client.get("/api/company-profile", headers=auth_headers).json()
        assert (body["company_name"], body["website"]) == ("Acme", "acme.test")


class TestDashboardRoutes:
    def test_summary(self, client, auth_headers, stock_id):
        _create_invoice(client, auth_headers, stock_id)
        body = client.get("/api/dashboard/summary", headers=auth_headers).json()
        assert (body["total_invoices"], body["total_stock_items"]) == (1, 1)
        assert Decimal(body["total_revenue"]) == Decimal("270.00")
        assert len(body["recent_invoices"]) == 1

    def test_revenue(self, client, auth_headers, stock_id):
        _create_invoice(client, auth_headers, stock_id)
        r = client.get("/api/dashboard/revenue", params={"period": "day"}, headers=auth_headers)
        assert r.status_code == 200
        body = r.json()
        assert Decimal(body["current_period_revenue"]) == Decimal("270.00")
        assert [b["count"] for b in body["buckets"]] == [1]

    def test_bad_period(self, client, auth_headers):
        r = client.get("/api/dashboard/revenue", params={"period": "hour"}, headers=auth_headers)
        assert r.status_code == 400
