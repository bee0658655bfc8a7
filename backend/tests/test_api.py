"""
HTTP-level tests for the franchise and super-admin APIs.

Money fields come back as strings (Decimal serialization).
"""

from datetime import datetime
from decimal import Decimal

import pytest
from recap.extensions import db
from recap.models import Franchise, ProfitSharingPayment, SecurityEvent
from recap.services import reporting_service, sales_service, settings_service
from recap.services.sales_service import record_sale

from conftest import PASSWORD


MARCH_10 = datetime(2026, 3, 10, 3, 0)


class TestProductsApi:
    def test_crud(self, client, headers_a):
        created = client.post('/api/products', headers=headers_a, json={
            'name': 'Roti Bakar', 'code': 'RB-01', 'hpp': '8000', 'price': '15000',
        })
        assert created.status_code == 201
        product_id = created.json['id']
        assert Decimal(created.json['price']) == Decimal('15000')

        updated = client.put(f'/api/products/{product_id}', headers=headers_a, json={'price': 17500})
        assert updated.status_code == 200
        assert Decimal(updated.json['price']) == Decimal('17500')

        listed = client.get('/api/products?search=roti', headers=headers_a)
        assert [p['id'] for p in listed.json['items']] == [product_id]

        assert client.delete(f'/api/products/{product_id}', headers=headers_a).status_code == 200
        assert client.get(f'/api/products/{product_id}', headers=headers_a).status_code == 404

    def test_duplicate_code(self, client, headers_a, product_a):
        resp = client.post('/api/products', headers=headers_a, json={
            'name': 'Other', 'code': 'KS-001', 'hpp': 1, 'price': 2,
        })
        assert resp.status_code == 409

    @pytest.mark.parametrize('payload', [
        {'name': 'X', 'code': 'X1', 'hpp': 1},
        {'name': 'X', 'code': 'X1', 'hpp': -1, 'price': 2},
        {'name': 'X', 'code': 'X1', 'hpp': 'abc', 'price': 2},
        {'name': '', 'code': 'X1', 'hpp': 1, 'price': 2},
        {'name': 'X', 'code': 'X1', 'hpp': 1, 'price': 2, 'franchise_id': 99},
    ])
    def test_validation(self, client, headers_a, payload):
        assert client.post('/api/products', headers=headers_a, json=payload).status_code == 400

    def test_pagination(self, client, headers_a):
        for i in range(3):
            client.post('/api/products', headers=headers_a, json={
                'name': f'P{i}', 'code': f'P{i}', 'hpp': 1, 'price': 2,
            })

        resp = client.get('/api/products?page=2&per_page=2', headers=headers_a)

        assert resp.json['count'] == 1
        assert resp.json['pagination']['total'] == 3


class TestSalesApi:
    def test_record_and_read(self, client, headers_a, product_a):
        resp = client.post('/api/sales', headers=headers_a, json={
            'product_id': product_a.id,
            'quantity': 2,
            'discount_type': 'percentage',
            'discount_value': 10,
            'created_at': '2026-03-10',
        })

        assert resp.status_code == 201
        body = resp.json
        assert body['created_at'] == '2026-03-09T17:00:00Z'
        assert Decimal(body['total_sales']) == Decimal('500000')
        assert Decimal(body['discount_amount']) == Decimal('50000')
        assert Decimal(body['total_admin_fee']) == Decimal('23500')
        assert Decimal(body['net_profit']) == Decimal('126500')

        page = client.get('/api/sales?month=2026-03', headers=headers_a).json
        assert page['groups'][0]['date'] == '2026-03-10'
        assert page['totals']['orders'] == 1

    @pytest.mark.parametrize('payload', [
        {'quantity': 1},
        {'product_id': 1, 'quantity': 0},
        {'product_id': 1, 'quantity': 1.5},
        {'product_id': 1, 'quantity': 1, 'discount_type': 'coupon'},
        {'product_id': 1, 'quantity': 1, 'discount_type': 'percentage', 'discount_value': 101},
        {'product_id': 1, 'quantity': 1, 'created_at': 'yesterday'},
        {'product_id': 1, 'quantity': 1, 'total_sales': 5},
    ])
    def test_validation(self, client, headers_a, payload):
        assert client.post('/api/sales', headers=headers_a, json=payload).status_code == 400

    def test_update_and_delete(self, client, headers_a, franchise_a, product_a):
        sale_id = record_sale(franchise_a.id, product_a.id, 1).sale.id

        resp = client.put(f'/api/sales/{sale_id}', headers=headers_a, json={'quantity': 3})
        assert resp.status_code == 200
        assert Decimal(resp.json['total_sales']) == Decimal('750000')

        assert client.delete(f'/api/sales/{sale_id}', headers=headers_a).status_code == 200
        assert client.get(f'/api/sales/{sale_id}', headers=headers_a).status_code == 404

    def test_bad_month(self, client, headers_a):
        assert client.get('/api/sales?month=2026-13', headers=headers_a).status_code == 400

    def test_month_options(self, client, headers_a):
        resp = client.get('/api/sales/months', headers=headers_a)
        assert len(resp.json['months']) == 12


class TestExpendituresApi:
    def test_crud_and_month_filter(self, client, headers_a):
        created = client.post('/api/expenditures', headers=headers_a, json={
            'amount': 50000, 'description': 'Sewa rak', 'expenditure_date': '2026-03-05',
        })
        assert created.status_code == 201
        exp_id = created.json['id']

        client.post('/api/expenditures', headers=headers_a, json={
            'amount': 10000, 'description': 'Plastik', 'expenditure_date': '2026-04-01',
        })

        march = client.get('/api/expenditures?month=2026-03', headers=headers_a).json
        assert [e['id'] for e in march['items']] == [exp_id]
        assert Decimal(march['total']) == Decimal('50000')
        assert march['available_months'] == ['2026-04', '2026-03']

        updated = client.put(f'/api/expenditures/{exp_id}', headers=headers_a, json={'amount': 60000})
        assert Decimal(updated.json['amount']) == Decimal('60000')

        assert client.delete(f'/api/expenditures/{exp_id}', headers=headers_a).status_code == 200

    @pytest.mark.parametrize('payload', [
        {'amount': 0, 'description': 'x'},
        {'amount': -5, 'description': 'x'},
        {'amount': 5},
        {'amount': 5, 'description': '   '},
    ])
    def test_validation(self, client, headers_a, payload):
        assert client.post('/api/expenditures', headers=headers_a, json=payload).status_code == 400


class TestSettingsApi:
    def test_get_and_update(self, client, headers_a, franchise_a, product_a):
        resp = client.get('/api/settings', headers=headers_a)
        assert Decimal(resp.json['admin_fee_percent']) == Decimal('5')
        assert Decimal(resp.json['fixed_deduction']) == Decimal('1000')

        sale_id = record_sale(franchise_a.id, product_a.id, 2).sale.id
        resp = client.put('/api/settings', headers=headers_a, json={'admin_fee_percent': 10, 'fixed_deduction': 0})
        assert resp.status_code == 200

        sale = client.get(f'/api/sales/{sale_id}', headers=headers_a).json
        assert Decimal(sale['total_admin_fee']) == Decimal('50000')
        assert Decimal(sale['net_profit']) == Decimal('150000')

    @pytest.mark.parametrize('payload', [
        {'admin_fee_percent': 101},
        {'admin_fee_percent': -1},
        {'fixed_deduction': -1},
        {'profit_sharing_percent': 0},
    ])
    def test_validation(self, client, headers_a, payload):
        assert client.put('/api/settings', headers=headers_a, json=payload).status_code == 400


class TestReportsApi:
    def test_financial(self, client, headers_a, franchise_a, product_a):
        client.post('/api/sales', headers=headers_a, json={
            'product_id': product_a.id, 'quantity': 2, 'created_at': '2026-03-10',
        })

        resp = client.get('/api/reports/financial?year=2026', headers=headers_a)

        assert resp.status_code == 200
        march = resp.json['months'][2]
        assert Decimal(march['net_profit']) == Decimal('174000')
        assert Decimal(march['revenue_share']) == Decimal('50000')
        assert Decimal(march['real_profit']) == Decimal('124000')

    def test_real_profit(self, client, headers_a, franchise_a, product_a):
        client.post('/api/sales', headers=headers_a, json={
            'product_id': product_a.id, 'quantity': 2, 'created_at': '2026-03-10',
        })
        client.post('/api/expenditures', headers=headers_a, json={
            'amount': 24000, 'description': 'Ongkir', 'expenditure_date': '2026-03-11',
        })

        resp = client.get('/api/reports/real-profit?year=2026&month=3', headers=headers_a)

        assert resp.status_code == 200
        assert Decimal(resp.json['real_profit']) == Decimal('100000')

    def test_bad_year(self, client, headers_a):
        assert client.get('/api/reports/financial?year=1900', headers=headers_a).status_code == 400

    def test_super_admin_reads_franchise_report(self, client, admin_headers, franchise_a):
        resp = client.get(f'/api/reports/financial?year=2026&franchise_id={franchise_a.id}', headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json['franchise_id'] == franchise_a.id


class TestAdminFranchisesApi:
    def test_provision(self, client, admin_headers):
        resp = client.post('/api/admin/franchises', headers=admin_headers, json={
            'email': 'new@recap.local', 'password': PASSWORD, 'name': 'Cabang Baru',
            'profit_sharing_percent': 15,
        })

        assert resp.status_code == 201
        assert resp.json['franchise']['email'] == 'new@recap.local'
        assert Decimal(resp.json['franchise']['profit_sharing_percent']) == Decimal('15')
        assert db.session.query(SecurityEvent).filter_by(event_type='FRANCHISE_CREATED').count() == 1

        token = client.post('/api/auth/login', json={'email': 'new@recap.local', 'password': PASSWORD})
        assert token.status_code == 200

    def test_duplicate_email_conflict(self, client, admin_headers, franchise_a):
        resp = client.post('/api/admin/franchises', headers=admin_headers, json={
            'email': 'owner_a@recap.local', 'password': PASSWORD, 'name': 'Dup',
        })
        assert resp.status_code == 409

    def test_weak_password(self, client, admin_headers):
        resp = client.post('/api/admin/franchises', headers=admin_headers, json={
            'email': 'weak@recap.local', 'password': 'weak', 'name': 'Weak',
        })
        assert resp.status_code == 400
        assert db.session.query(Franchise).count() == 0

    def test_rename_and_rate(self, client, admin_headers, franchise_a):
        resp = client.put(f'/api/admin/franchises/{franchise_a.id}', headers=admin_headers, json={'name': 'A Baru'})
        assert resp.json['franchise']['name'] == 'A Baru'

        resp = client.put(f'/api/admin/franchises/{franchise_a.id}/profit-sharing', headers=admin_headers,
                          json={'profit_sharing_percent': 25})
        assert Decimal(resp.json['franchise']['profit_sharing_percent']) == Decimal('25')

        resp = client.put(f'/api/admin/franchises/{franchise_a.id}/profit-sharing', headers=admin_headers,
                          json={'profit_sharing_percent': 250})
        assert resp.status_code == 400

    def test_status_requires_bool(self, client, admin_headers, franchise_a):
        resp = client.put(f'/api/admin/franchises/{franchise_a.id}/status', headers=admin_headers,
                          json={'is_active': 'no'})
        assert resp.status_code == 400

    def test_missing_franchise(self, client, admin_headers):
        assert client.get('/api/admin/franchises/99999', headers=admin_headers).status_code == 404
        assert client.delete('/api/admin/franchises/99999', headers=admin_headers).status_code == 404

    def test_delete(self, client, admin_headers, franchise_a, product_a):
        franchise_id = franchise_a.id
        resp = client.delete(f'/api/admin/franchises/{franchise_id}', headers=admin_headers)

        assert resp.status_code == 200
        assert db.session.get(Franchise, franchise_id) is None


class TestAdminPaymentsApi:
    def test_recalculate_list_and_mark_paid(self, client, admin_headers, franchise_a, product_a):
        record_sale(franchise_a.id, product_a.id, 4, created_at=MARCH_10)

        resp = client.post('/api/admin/payments/recalculate', headers=admin_headers,
                           json={'month': 3, 'year': 2026})
        assert resp.status_code == 200
        assert resp.json['count'] == 1
        payment = resp.json['items'][0]
        assert Decimal(payment['profit_sharing_amount']) == Decimal('100000')

        resp = client.put(f"/api/admin/payments/{payment['id']}", headers=admin_headers,
                          json={'payment_status': 'paid', 'paid_at': '2026-04-05', 'notes': 'BCA'})
        assert resp.status_code == 200
        assert resp.json['payment']['payment_status'] == 'paid'
        assert resp.json['payment']['paid_at'] == '2026-04-04T17:00:00Z'

        listed = client.get('/api/admin/payments?month=3&year=2026', headers=admin_headers).json
        assert listed['summary']['paid_count'] == 1
        assert Decimal(listed['summary']['total_profit_sharing']) == Decimal('100000')

        assert client.delete(f"/api/admin/payments/{payment['id']}", headers=admin_headers).status_code == 200
        assert db.session.query(ProfitSharingPayment).count() == 0

    def test_recalculate_validation(self, client, admin_headers):
        assert client.post('/api/admin/payments/recalculate', headers=admin_headers,
                           json={'month': '3', 'year': 2026}).status_code == 400
        assert client.post('/api/admin/payments/recalculate', headers=admin_headers,
                           json={'month': 13, 'year': 2026}).status_code == 400

    def test_bad_status_and_missing_payment(self, client, admin_headers):
        assert client.put('/api/admin/payments/99999', headers=admin_headers,
                          json={'payment_status': 'paid'}).status_code == 404
        assert client.put('/api/admin/payments/99999', headers=admin_headers,
                          json={'payment_status': 'partial'}).status_code == 400


class TestAdminViewsApi:
    def test_dashboard(self, client, admin_headers, franchise_a, franchise_b, product_a):
        record_sale(franchise_a.id, product_a.id, 4, created_at=MARCH_10)

        resp = client.get('/api/admin/dashboard?year=2026', headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json['totals']['active_franchises'] == 2
        assert resp.json['top_franchises'][0]['franchise_id'] == franchise_a.id

    def test_global_sales_and_products(self, client, admin_headers, franchise_a, product_a, product_b):
        record_sale(franchise_a.id, product_a.id, 1, created_at=MARCH_10)

        sales = client.get('/api/admin/sales?year=2026&month=3', headers=admin_headers).json
        assert [r['franchise_id'] for r in sales['rows']] == [franchise_a.id]

        products = client.get('/api/admin/products', headers=admin_headers).json
        assert {p['franchise_name'] for p in products['items']} == {'Franchise A', 'Franchise B'}

    def test_product_performance(self, client, admin_headers, franchise_a, product_a):
        record_sale(franchise_a.id, product_a.id, 3, created_at=MARCH_10)

        resp = client.get('/api/admin/product-performance?year=2026&month=3', headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json['items'][0]['total_quantity'] == 3

    def test_expenditures(self, client, admin_headers, headers_a):
        client.post('/api/expenditures', headers=headers_a, json={
            'amount': 5000, 'description': 'Listrik', 'expenditure_date': '2026-03-05',
        })

        resp = client.get('/api/admin/expenditures?month=2026-03', headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json['by_franchise'][0]['franchise_name'] == 'Franchise A'


def _explode(*args, **kwargs):
    raise RuntimeError("boom")


class TestUnexpectedErrors:
    """Unexpected failures come back as a JSON 500, not an HTML page."""

    @pytest.mark.parametrize('target, name, method, url, body', [
        (reporting_service, 'financial_report', 'get', '/api/reports/financial?year=2026', None),
        (reporting_service, 'real_profit_report', 'get', '/api/reports/real-profit?year=2026', None),
        (settings_service, 'settings_payload', 'get', '/api/settings', None),
        (settings_service, 'update_admin_settings', 'put', '/api/settings', {'admin_fee_percent': '5'}),
        (sales_service, 'update_sale', 'put', '/api/sales/1', {'quantity': 2}),
        (sales_service, 'delete_sale', 'delete', '/api/sales/1', None),
    ])
    def test_json_500(self, client, headers_a, monkeypatch, target, name, method, url, body):
        monkeypatch.setattr(target, name, _explode)

        response = getattr(client, method)(url, headers=headers_a, json=body)

        assert response.status_code == 500
        assert response.json == {'error': 'Internal server error'}


class TestSystemApi:
    def test_health(self, client, db_session):
        resp = client.get('/api/health')
        assert resp.status_code == 200
        assert resp.json['status'] == 'healthy'

    def test_version(self, client, db_session):
        assert client.get('/api/version').json['api_version'] == '1.0.0'

    def test_cors_header(self, client, db_session):
        resp = client.get('/api/health', headers={'Origin': 'http://localhost:5173'})
        assert resp.headers['Access-Control-Allow-Origin'] == 'http://localhost:5173'
