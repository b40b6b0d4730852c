"""Tests for sample data seeding."""

from core.models import CustomerQuery
from core.seed import sample_customers, seed_sample_data


class TestSeedSampleData:

    def test_seeds_empty_store(self, customer_service, stored_flags, primary_count):
        inserted = seed_sample_data(customer_service)

        assert inserted == len(sample_customers()) == 3

        customers, total = customer_service.list_customers(CustomerQuery())
        assert total == 3
        for customer in customers:
            assert stored_flags(customer.id) == (True, False)
            assert primary_count(customer.id) == 1

    def test_skips_non_empty_store(self, customer_service, customer_payload):
        customer_service.create(customer_payload())

        assert seed_sample_data(customer_service) == 0
        assert customer_service.db.execute_scalar("SELECT COUNT(*) FROM customers") == 1

    def test_second_run_is_noop(self, customer_service):
        seed_sample_data(customer_service)

        assert seed_sample_data(customer_service) == 0
        assert customer_service.db.execute_scalar("SELECT COUNT(*) FROM customers") == 3
