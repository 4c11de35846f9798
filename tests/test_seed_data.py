from app.models import Customer
from seed_data import SAMPLE_CUSTOMERS, seed_customers


def test_seed_customers_is_idempotent(app, customers):
    added = seed_customers()
    # Evil Rabbit and Lee Robinson already exist
    assert added == len(SAMPLE_CUSTOMERS) - 2
    assert seed_customers() == 0
    assert Customer.query.count() == len(SAMPLE_CUSTOMERS)
