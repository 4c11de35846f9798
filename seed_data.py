from app import create_app, db
from app.models import Customer

SAMPLE_CUSTOMERS = [
    ("Delba de Oliveira", "delba@oliveira.com", "/customers/delba-de-oliveira.png"),
    ("Lee Robinson", "lee@robinson.com", "/customers/lee-robinson.png"),
    ("Hector Simpson", "hector@simpson.com", "/customers/hector-simpson.png"),
    ("Steven Tey", "steven@tey.com", "/customers/steven-tey.png"),
    ("Steph Dietz", "steph@dietz.com", "/customers/steph-dietz.png"),
    ("Michael Novotny", "michael@novotny.com", "/customers/michael-novotny.png"),
    ("Evil Rabbit", "evil@rabbit.com", "/customers/evil-rabbit.png"),
    ("Emil Kowalski", "emil@kowalski.com", "/customers/emil-kowalski.png"),
    ("Amy Burns", "amy@burns.com", "/customers/amy-burns.png"),
    ("Balazs Orban", "balazs@orban.com", "/customers/balazs-orban.png"),
]


def seed_customers(customers=SAMPLE_CUSTOMERS) -> int:
    """Insert sample customers that are not present yet, matched by email."""
    existing = {email for (email,) in db.session.query(Customer.email)}
    added = 0
    for name, email, image_url in customers:
        if email in existing:
            continue
        db.session.add(Customer(name=name, email=email, image_url=image_url))
        added += 1
    db.session.commit()
    return added


def seed_initial_data() -> None:
    """Create the tables and seed sample customers."""
    app = create_app([])
    with app.app_context():
        db.create_all()
        added = seed_customers()
        print(f"Seeded {added} customers.")


if __name__ == "__main__":
    seed_initial_data()
