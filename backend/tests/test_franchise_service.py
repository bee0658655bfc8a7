"""
Franchise provisioning and super-admin management tests.

Provisioning is one transaction: user, role, franchise and settings either
all exist afterwards or none do.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from recap.models import (
    AdminSettings,
    Franchise,
    Product,
    ProfitSharingPayment,
    ROLE_FRANCHISE,
    Sale,
    User,
    UserRole,
)
from recap.services import franchise_service
from recap.services.auth_service import PasswordValidationError, authenticate
from recap.services.franchise_service import (
    FranchiseError,
    change_franchise_password,
    create_franchise_account,
    delete_franchise,
    list_franchises,
    set_franchise_active,
    set_profit_sharing_percent,
    update_franchise,
)
from recap.services.profit_sharing_service import recalculate_period
from recap.services.sales_service import record_sale
from recap.services.session_service import create_session, validate_session

from conftest import PASSWORD


MARCH_10 = datetime(2026, 3, 10, 3, 0)


class TestProvisioning:
    def test_creates_user_role_franchise_and_settings(self, db_session):
        franchise = create_franchise_account(
            email="  New@Recap.Local ",
            password=PASSWORD,
            name="  Cabang Baru ",
        )

        assert franchise.name == "Cabang Baru"
        assert franchise.is_active is True
        assert franchise.profit_sharing_percent == Decimal("10")

        user = db_session.query(User).filter_by(id=franchise.user_id).one()
        assert user.email == "new@recap.local"
        assert user.role == ROLE_FRANCHISE

        settings = db_session.query(AdminSettings).filter_by(franchise_id=franchise.id).one()
        assert settings.admin_fee_percent == Decimal("5")
        assert settings.fixed_deduction == Decimal("1000")

    def test_duplicate_email_creates_nothing(self, db_session, franchise_a):
        with pytest.raises(FranchiseError, match="already registered"):
            create_franchise_account(email="owner_a@recap.local", password=PASSWORD, name="Dup")

        assert db_session.query(Franchise).count() == 1
        assert db_session.query(User).count() == 1

    def test_weak_password_creates_nothing(self, db_session):
        with pytest.raises(PasswordValidationError):
            create_franchise_account(email="weak@recap.local", password="short", name="Weak")

        assert db_session.query(User).count() == 0
        assert db_session.query(Franchise).count() == 0

    def test_failure_after_user_rolls_back_user(self, db_session, monkeypatch):
        def broken_settings(franchise_id, commit=True):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(franchise_service, "create_default_settings", broken_settings)

        with pytest.raises(FranchiseError):
            create_franchise_account(email="late@recap.local", password=PASSWORD, name="Late")

        assert db_session.query(User).count() == 0
        assert db_session.query(UserRole).count() == 0
        assert db_session.query(Franchise).count() == 0

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_requires_name(self, db_session, name):
        with pytest.raises(FranchiseError):
            create_franchise_account(email="x@recap.local", password=PASSWORD, name=name)

    @pytest.mark.parametrize("pct", [-1, 101, "abc"])
    def test_rejects_bad_percent(self, db_session, pct):
        with pytest.raises(FranchiseError):
            create_franchise_account(
                email="x@recap.local", password=PASSWORD, name="X", profit_sharing_percent=pct
            )


class TestManagement:
    def test_list_and_search(self, db_session, franchise_a, franchise_b):
        assert [f.name for f in list_franchises()] == ["Franchise A", "Franchise B"]
        assert [f.name for f in list_franchises(search="owner_b")] == ["Franchise B"]

        set_franchise_active(franchise_b.id, False)
        assert [f.name for f in list_franchises(active_only=True)] == ["Franchise A"]

    def test_rename(self, db_session, franchise_a):
        assert update_franchise(franchise_a.id, "Renamed").name == "Renamed"
        with pytest.raises(FranchiseError):
            update_franchise(99999, "Missing")

    def test_deactivation_blocks_login_and_revokes_sessions(self, db_session, franchise_a):
        _, token = create_session(franchise_a.user_id)
        assert validate_session(token) is not None

        set_franchise_active(franchise_a.id, False)

        assert validate_session(token) is None
        assert authenticate("owner_a@recap.local", PASSWORD) is None

        set_franchise_active(franchise_a.id, True)
        assert authenticate("owner_a@recap.local", PASSWORD) is not None

    def test_password_change_revokes_sessions(self, db_session, franchise_a):
        _, token = create_session(franchise_a.user_id)

        change_franchise_password(franchise_a.id, "NewPassword1!")

        assert validate_session(token) is None
        assert authenticate("owner_a@recap.local", PASSWORD) is None
        assert authenticate("owner_a@recap.local", "NewPassword1!") is not None


class TestProfitSharingRate:
    def test_revalues_stored_payments(self, db_session, franchise_a, product_a):
        record_sale(franchise_a.id, product_a.id, 4, created_at=MARCH_10)
        recalculate_period(3, 2026)

        set_profit_sharing_percent(franchise_a.id, 20)

        payment = db_session.query(ProfitSharingPayment).filter_by(franchise_id=franchise_a.id).one()
        assert payment.total_revenue == Decimal("1000000")
        assert payment.profit_sharing_percent == Decimal("20")
        assert payment.profit_sharing_amount == Decimal("200000")

    def test_keeps_payment_status(self, db_session, franchise_a, product_a):
        record_sale(franchise_a.id, product_a.id, 1, created_at=MARCH_10)
        payment = recalculate_period(3, 2026)[0]
        payment.payment_status = "paid"
        db_session.commit()

        set_profit_sharing_percent(franchise_a.id, Decimal("12.5"))

        payment = db_session.query(ProfitSharingPayment).one()
        assert payment.payment_status == "paid"
        assert payment.profit_sharing_amount == Decimal("31250")

    def test_rejects_out_of_range(self, db_session, franchise_a):
        with pytest.raises(FranchiseError):
            set_profit_sharing_percent(franchise_a.id, 150)


class TestDelete:
    def test_removes_owned_rows_only(self, db_session, franchise_a, franchise_b, product_a, product_b):
        record_sale(franchise_a.id, product_a.id, 1)
        record_sale(franchise_b.id, product_b.id, 1)
        owner_id = franchise_a.user_id
        franchise_id = franchise_a.id

        delete_franchise(franchise_id)

        assert db_session.query(Franchise).filter_by(id=franchise_id).first() is None
        assert db_session.query(Sale).filter_by(franchise_id=franchise_id).count() == 0
        assert db_session.query(Product).filter_by(franchise_id=franchise_id).count() == 0
        assert db_session.query(AdminSettings).filter_by(franchise_id=franchise_id).count() == 0
        assert db_session.query(User).filter_by(id=owner_id).one().is_active is False

        assert db_session.query(Sale).filter_by(franchise_id=franchise_b.id).count() == 1
        assert db_session.query(Product).filter_by(franchise_id=franchise_b.id).count() == 1

    def test_missing(self, db_session):
        with pytest.raises(FranchiseError):
            delete_franchise(12345)
