import os
import sys
import django
import random
from decimal import Decimal
from faker import Faker

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set up Django environment
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'marketplace_backend.settings')
django.setup()

from core import workflows
from core.models import User, Category, Service, Negotiation

fake = Faker()

CATEGORY_NAMES = [
    ("Moving", "truck"), ("Cleaning", "broom"), ("Plumbing", "wrench"),
    ("Electrical", "bolt"), ("Tutoring", "book"), ("Photography", "camera"),
]

SERVICE_TITLES = [
    "Same-day Service", "Weekend Special", "Premium Package",
    "Basic Package", "Emergency Call-out", "Monthly Plan"
]


def fake_phone():
    return fake.numerify('+1 (###) ###-####')


def create_user(role, password='password123'):
    email = fake.unique.email()
    return User.objects.create_user(
        username=email[:150],
        email=email,
        password=password,
        name=fake.name(),
        phone=fake_phone(),
        city=fake.city(),
        role=role
    )


def create_users(num_customers=10, num_vendors=5):
    print(f"Creating {num_customers} customers and {num_vendors} vendors...")

    customers = [create_user(User.Role.CUSTOMER) for _ in range(num_customers)]
    vendors = [create_user(User.Role.VENDOR) for _ in range(num_vendors)]

    admin_email = 'admin@example.com'
    admin = User.objects.filter(email=admin_email).first()
    if admin is None:
        admin = User.objects.create_superuser(
            username='admin',
            email=admin_email,
            password='admin12345',
            name='Marketplace Admin',
            role=User.Role.ADMIN
        )

    print(f"Created {len(customers)} customers and {len(vendors)} vendors.")
    return customers, vendors, admin


def create_categories():
    print("Creating categories...")
    categories = []
    for name, icon in CATEGORY_NAMES:
        category, _ = Category.objects.get_or_create(name=name, defaults={'icon': icon})
        categories.append(category)
    print(f"Have {len(categories)} categories.")
    return categories


def create_services(vendors, categories):
    print("Creating services...")
    services = []

    for vendor in vendors:
        # Each vendor offers 1-3 services
        for _ in range(random.randint(1, 3)):
            category = random.choice(categories)
            service = Service.objects.create(
                vendor=vendor,
                category=category,
                service_title=f"{category.name} - {random.choice(SERVICE_TITLES)}",
                description=fake.paragraph(nb_sentences=3),
                price=Decimal(random.uniform(20.0, 500.0)).quantize(Decimal('0.01')),
                phone=fake_phone(),
                city=vendor.city or fake.city(),
                image=f"https://picsum.photos/seed/{fake.uuid4()}/640/480"
            )
            services.append(service)

    print(f"Created {len(services)} services.")
    return services


def create_negotiations(customers, services):
    print("Creating negotiations...")
    negotiations = []

    for customer in customers:
        # Each customer negotiates on 0-3 distinct services
        for service in random.sample(services, min(len(services), random.randint(0, 3))):
            offer = (service.price * Decimal(random.uniform(0.6, 1.0))).quantize(Decimal('0.01'))
            negotiation = workflows.create_negotiation(customer, service.id, offer)

            outcome = random.choice(['accept', 'reject', 'leave'])
            if outcome != 'leave':
                new_status = Negotiation.Status.ACCEPTED if outcome == 'accept' else Negotiation.Status.REJECTED
                negotiation = workflows.resolve_negotiation(service.vendor, negotiation.id, new_status)

            negotiations.append(negotiation)

    print(f"Created {len(negotiations)} negotiations.")
    return negotiations


def create_reviews(negotiations):
    print("Creating reviews...")
    reviews = []

    accepted = [n for n in negotiations if n.status == Negotiation.Status.ACCEPTED]

    for negotiation in accepted:
        # 70% chance of leaving a review
        if random.random() < 0.7:
            review = workflows.create_review(
                negotiation.customer,
                negotiation.service_id,
                random.randint(3, 5),
                fake.sentence(nb_words=12)
            )
            reviews.append(review)

    print(f"Created {len(reviews)} reviews.")
    return reviews


def main():
    print("Starting database population...")

    customers, vendors, _ = create_users(num_customers=20, num_vendors=8)
    categories = create_categories()
    services = create_services(vendors, categories)
    negotiations = create_negotiations(customers, services)
    create_reviews(negotiations)

    print("Database population completed successfully!")


if __name__ == '__main__':
    main()
