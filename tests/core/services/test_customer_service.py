"""Tests for CustomerService."""

import sqlite3
from unittest.mock import patch

import pytest

from core.exceptions import CustomerNotFoundError, DuplicateFieldError
from core.models import CustomerQuery, CustomerUpdate


def _update(customer_payload, **fields) -> CustomerUpdate:
    return CustomerUpdate(**customer_payload(**fields).model_dump())


class TestCustomerCreate:
    """Tests for CustomerService.create."""

    def test_creates_customer(self, customer_service, customer_payload):
        """Creates customer with provided data."""
        customer = customer_service.create(customer_payload(email="ann@example.com"))

        assert customer.id >= 1
        assert customer.first_name == "Ann"
        assert customer.phone_number == "5551112222"
        assert customer.email == "ann@example.com"

    def test_without_addresses_flags_false(self, customer_service, customer_payload):
        customer = customer_service.create(customer_payload())

        assert customer.has_multiple_addresses is False
        assert customer.only_one_address is False

    def test_single_primary_address(self, customer_service, customer_payload, address_payload):
        """Creating with one primary address marks only_one_address."""
        customer = customer_service.create(
            customer_payload(addresses=[address_payload(is_primary=True)])
        )

        detail = customer_service.get_with_addresses(customer.id)
        assert customer.only_one_address is True
        assert customer.has_multiple_addresses is False
        assert len(detail.addresses) == 1
        assert detail.addresses[0].is_primary is True

    def test_multiple_addresses_sets_flag(self, customer_service, customer_payload, address_payload, stored_flags):
        customer = customer_service.create(customer_payload(addresses=[
            address_payload(),
            address_payload(address_line1="99 Elm Road"),
        ]))

        assert customer.has_multiple_addresses is True
        assert stored_flags(customer.id) == (True, False)

    def test_last_primary_in_batch_wins(self, customer_service, customer_payload, address_payload, primary_count):
        """Several primary-flagged payloads leave only the last one primary."""
        customer = customer_service.create(customer_payload(addresses=[
            address_payload(address_line1="First Street", is_primary=True),
            address_payload(address_line1="Second Street", is_primary=True),
        ]))

        detail = customer_service.get_with_addresses(customer.id)
        primaries = [a.address_line1 for a in detail.addresses if a.is_primary]
        assert primaries == ["Second Street"]
        assert primary_count(customer.id) == 1

    def test_duplicate_phone_rejected(self, db, customer_service, customer_payload):
        customer_service.create(customer_payload())

        with pytest.raises(DuplicateFieldError) as exc_info:
            customer_service.create(customer_payload(first_name="Other"))

        assert exc_info.value.field == "phone_number"
        assert str(exc_info.value) == "Phone number already exists"
        assert db.execute_scalar("SELECT COUNT(*) FROM customers") == 1

    def test_duplicate_email_rejected(self, customer_service, customer_payload):
        customer_service.create(customer_payload(email="ann@example.com"))

        with pytest.raises(DuplicateFieldError) as exc_info:
            customer_service.create(
                customer_payload(phone_number="5559998888", email="ann@example.com")
            )

        assert exc_info.value.field == "email"
        assert str(exc_info.value) == "Email already exists"

    def test_phone_checked_before_email(self, customer_service, customer_payload):
        customer_service.create(customer_payload(email="ann@example.com"))

        with pytest.raises(DuplicateFieldError) as exc_info:
            customer_service.create(customer_payload(email="ann@example.com"))

        assert exc_info.value.field == "phone_number"

    def test_customers_without_email_do_not_conflict(self, customer_service, customer_payload):
        customer_service.create(customer_payload())
        second = customer_service.create(customer_payload(phone_number="5559998888", email=""))

        assert second.email is None

    def test_failed_address_insert_rolls_back_customer(self, db, customer_service, customer_payload, address_payload):
        """All-or-nothing: a failing address leaves no customer and no addresses."""
        from core.services import customer_service as module

        real_insert = module.insert_address
        calls = {"n": 0}

        def flaky_insert(tx, customer_id, data, now):
            calls["n"] += 1
            if calls["n"] == 2:
                raise sqlite3.OperationalError("disk I/O error")
            return real_insert(tx, customer_id, data, now)

        with patch.object(module, "insert_address", side_effect=flaky_insert):
            with pytest.raises(sqlite3.OperationalError):
                customer_service.create(customer_payload(addresses=[
                    address_payload(),
                    address_payload(address_line1="99 Elm Road"),
                ]))

        assert db.execute_scalar("SELECT COUNT(*) FROM customers") == 0
        assert db.execute_scalar("SELECT COUNT(*) FROM addresses") == 0

    def test_logs_audit_entry(self, customer_service, audit, customer_payload):
        customer = customer_service.create(customer_payload())

        history = audit.get_entity_history("customer", customer.id)

        assert len(history) == 1
        assert history[0]["action"] == "create"
        assert history[0]["changes"]["created"]["phone_number"] == "5551112222"


class TestCustomerGet:
    """Tests for CustomerService.get_by_id / get_with_addresses."""

    def test_returns_none_for_nonexistent(self, customer_service):
        assert customer_service.get_by_id(999) is None
        assert customer_service.get_with_addresses(999) is None

    def test_addresses_primary_first(self, customer_service, customer_payload, address_payload):
        customer = customer_service.create(customer_payload(addresses=[
            address_payload(address_line1="Older Street"),
            address_payload(address_line1="Primary Street", is_primary=True),
        ]))

        detail = customer_service.get_with_addresses(customer.id)

        assert [a.address_line1 for a in detail.addresses] == ["Primary Street", "Older Street"]


class TestCustomerUpdate:
    """Tests for CustomerService.update."""

    def test_updates_core_fields(self, customer_service, customer_payload):
        customer = customer_service.create(customer_payload())

        updated = customer_service.update(
            customer.id, _update(customer_payload, first_name="Anne", email="anne@example.com")
        )

        assert updated.first_name == "Anne"
        assert updated.email == "anne@example.com"
        assert updated.updated_at >= customer.updated_at

    def test_not_found(self, customer_service, customer_payload):
        with pytest.raises(CustomerNotFoundError):
            customer_service.update(999, _update(customer_payload))

    def test_keeping_own_phone_is_not_a_conflict(self, customer_service, customer_payload):
        customer = customer_service.create(customer_payload(email="ann@example.com"))

        updated = customer_service.update(
            customer.id, _update(customer_payload, email="ann@example.com")
        )

        assert updated.phone_number == customer.phone_number

    def test_taking_another_customers_phone_rejected(self, customer_service, customer_payload):
        customer_service.create(customer_payload())
        other = customer_service.create(customer_payload(phone_number="5559998888"))

        with pytest.raises(DuplicateFieldError):
            customer_service.update(other.id, _update(customer_payload))

    def test_taking_another_customers_email_rejected(self, customer_service, customer_payload):
        customer_service.create(customer_payload(email="ann@example.com"))
        other = customer_service.create(customer_payload(phone_number="5559998888"))

        with pytest.raises(DuplicateFieldError) as exc_info:
            customer_service.update(
                other.id, _update(customer_payload, phone_number="5559998888", email="ann@example.com")
            )

        assert exc_info.value.field == "email"

    def test_replaces_address_list(self, customer_service, customer_payload, address_payload):
        """A new non-empty list leaves exactly the new addresses."""
        customer = customer_service.create(customer_payload(addresses=[
            address_payload(address_line1="Old One Street"),
            address_payload(address_line1="Old Two Street"),
        ]))

        updated = customer_service.update(customer.id, _update(
            customer_payload,
            addresses=[address_payload(address_line1="New Street", is_primary=True)],
        ))

        detail = customer_service.get_with_addresses(customer.id)
        assert [a.address_line1 for a in detail.addresses] == ["New Street"]
        assert updated.only_one_address is True
        assert updated.has_multiple_addresses is False

    def test_empty_list_removes_all_addresses(self, db, customer_service, customer_payload, address_payload, stored_flags):
        customer = customer_service.create(customer_payload(addresses=[
            address_payload(),
            address_payload(address_line1="99 Elm Road"),
        ]))

        customer_service.update(customer.id, _update(customer_payload, addresses=[]))

        assert db.execute_scalar(
            "SELECT COUNT(*) FROM addresses WHERE customer_id = ?", (customer.id,)
        ) == 0
        assert stored_flags(customer.id) == (False, False)

    def test_absent_list_removes_all_addresses(self, customer_service, customer_payload, address_payload):
        customer = customer_service.create(customer_payload(addresses=[address_payload()]))

        updated = customer_service.update(customer.id, _update(customer_payload))

        assert customer_service.get_with_addresses(customer.id).addresses == []
        assert updated.only_one_address is False

    def test_conflict_leaves_addresses_untouched(self, customer_service, customer_payload, address_payload):
        customer_service.create(customer_payload(phone_number="5559998888"))
        customer = customer_service.create(customer_payload(addresses=[address_payload()]))

        with pytest.raises(DuplicateFieldError):
            customer_service.update(customer.id, _update(customer_payload, phone_number="5559998888"))

        assert len(customer_service.get_with_addresses(customer.id).addresses) == 1

    def test_logs_field_changes(self, customer_service, audit, customer_payload):
        customer = customer_service.create(customer_payload())

        customer_service.update(customer.id, _update(customer_payload, last_name="Long"))

        entry = audit.get_entity_history("customer", customer.id)[0]
        assert entry["action"] == "update"
        assert entry["changes"]["last_name"] == {"old": "Lee", "new": "Long"}


class TestCustomerDelete:
    """Tests for CustomerService.delete."""

    def test_cascades_addresses(self, db, customer_service, customer_payload, address_payload):
        customer = customer_service.create(customer_payload(addresses=[
            address_payload(),
            address_payload(address_line1="99 Elm Road"),
            address_payload(address_line1="7 Pine Avenue"),
        ]))

        assert customer_service.delete(customer.id) is True

        assert customer_service.get_by_id(customer.id) is None
        assert db.execute_scalar(
            "SELECT COUNT(*) FROM addresses WHERE customer_id = ?", (customer.id,)
        ) == 0

    def test_missing_returns_false(self, customer_service):
        assert customer_service.delete(999) is False


class TestCustomerListing:
    """Tests for list_customers and the address-count views."""

    @pytest.fixture
    def three_customers(self, customer_service, customer_payload, address_payload):
        ann = customer_service.create(customer_payload(
            email="ann@example.com",
            addresses=[
                address_payload(city="Mumbai", pin_code="400001"),
                address_payload(city="Delhi", pin_code="110001"),
                address_payload(city="Pune", pin_code="411001"),
            ],
        ))
        bob = customer_service.create(customer_payload(
            first_name="Bob", last_name="Ray", phone_number="5553334444",
            addresses=[address_payload(city="Delhi", pin_code="110002")],
        ))
        cat = customer_service.create(customer_payload(
            first_name="Cat", last_name="Moss", phone_number="5556667777",
            addresses=[
                address_payload(city="Chennai", pin_code="600001"),
                address_payload(city="Kochi", pin_code="682001"),
            ],
        ))
        return ann, bob, cat

    def test_default_newest_first(self, customer_service, three_customers):
        ann, bob, cat = three_customers

        customers, total = customer_service.list_customers(CustomerQuery())

        assert total == 3
        assert [c.id for c in customers] == [cat.id, bob.id, ann.id]

    def test_pagination(self, customer_service, three_customers):
        customers, total = customer_service.list_customers(
            CustomerQuery(page=2, limit=2, sort="first_name", order="asc")
        )

        assert total == 3
        assert [c.first_name for c in customers] == ["Cat"]

    def test_search_matches_phone_and_email(self, customer_service, three_customers):
        ann, bob, _ = three_customers

        by_phone, _ = customer_service.list_customers(CustomerQuery(search="33344"))
        by_email, _ = customer_service.list_customers(CustomerQuery(search="ann@"))

        assert [c.id for c in by_phone] == [bob.id]
        assert [c.id for c in by_email] == [ann.id]

    def test_city_filter_limits_customers_and_nested_addresses(self, customer_service, three_customers):
        ann, bob, _ = three_customers

        customers, total = customer_service.list_customers(
            CustomerQuery(city="delhi", sort="first_name", order="asc")
        )

        assert total == 2
        assert [c.id for c in customers] == [ann.id, bob.id]
        assert [a.city for a in customers[0].addresses] == ["Delhi"]

    def test_search_and_address_filter_combine(self, customer_service, three_customers):
        _, bob, _ = three_customers

        customers, total = customer_service.list_customers(
            CustomerQuery(search="Bob", city="Delhi")
        )

        assert total == 1
        assert customers[0].id == bob.id

    @pytest.mark.parametrize("term", ["_", "%", "5%3"])
    def test_wildcards_in_search_match_literally(self, customer_service, three_customers, term):
        customers, total = customer_service.list_customers(CustomerQuery(search=term))

        assert total == 0
        assert customers == []

    def test_literal_underscore_matches(self, customer_service, customer_payload, three_customers):
        dee = customer_service.create(customer_payload(
            first_name="Dee", phone_number="5550001111", email="d_k@example.com"
        ))

        customers, total = customer_service.list_customers(CustomerQuery(search="d_k"))

        assert total == 1
        assert [c.id for c in customers] == [dee.id]

    def test_wildcards_in_address_filter_match_literally(self, customer_service, three_customers):
        _, total = customer_service.list_customers(CustomerQuery(city="%", pin_code="4_0001"))

        assert total == 0

    def test_multiple_addresses_view(self, customer_service, three_customers):
        ann, _, cat = three_customers

        customers = customer_service.list_with_multiple_addresses()

        assert [(c.id, c.address_count) for c in customers] == [(ann.id, 3), (cat.id, 2)]
        assert len(customers[0].addresses) == 3

    def test_single_address_view(self, customer_service, three_customers):
        _, bob, _ = three_customers

        customers = customer_service.list_with_single_address()

        assert [(c.id, c.address_count) for c in customers] == [(bob.id, 1)]

    def test_views_read_live_counts_not_flags(self, db, customer_service, three_customers):
        """Stale cached flags do not change the views."""
        _, bob, _ = three_customers
        db.execute(
            "UPDATE customers SET only_one_address = 0, has_multiple_addresses = 1 WHERE id = ?",
            (bob.id,)
        )

        assert [c.id for c in customer_service.list_with_single_address()] == [bob.id]
