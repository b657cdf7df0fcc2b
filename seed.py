from vatbook.core.database import Base, SessionLocal, engine
from vatbook.models import Customer, Expense, ExpenseCategory, ExpenseStatus, Invoice, User
from vatbook.models.user import BusinessType
from vatbook.services.customer_service import create_customer
from vatbook.services.expense_service import create_expense, update_expense_status
from vatbook.services.invoice_service import create_invoice, record_payment
from vatbook.services.user_service import create_user, get_user_by_email, save_profile

from faker import Faker
import random
from datetime import date, timedelta
from decimal import Decimal

DEMO_EMAIL = "demo@vatbook.local"
DEMO_PASSWORD = "demo-password"

fake = Faker()


def _money(low, high):
    return Decimal(str(round(random.uniform(low, high), 2)))


def _past_date(max_days=180):
    return date.today() - timedelta(days=random.randint(0, max_days))


Base.metadata.create_all(bind=engine)
db = SessionLocal()

try:
    print("🔄 Clearing existing demo data...")
    existing = get_user_by_email(db, DEMO_EMAIL)
    if existing:
        db.query(Invoice).filter(Invoice.owner_id == existing.id).delete()
        db.query(Expense).filter(Expense.owner_id == existing.id).delete()
        db.query(Customer).filter(Customer.owner_id == existing.id).delete()
        db.query(User).filter(User.id == existing.id).delete()
        db.commit()
    print("✅ Data cleared.")

    user = create_user(db, DEMO_EMAIL, DEMO_PASSWORD)
    save_profile(
        db,
        user_id=user.id,
        email=DEMO_EMAIL,
        full_name=fake.name(),
        business_name=fake.company(),
        business_type=random.choice(list(BusinessType)),
        phone=''.join(filter(str.isdigit, fake.phone_number()))[:20],
        location=fake.city(),
    )
    print(f"✅ Demo user {DEMO_EMAIL} / {DEMO_PASSWORD}")

    print("🔄 Creating customers...")
    customers = []
    for _ in range(random.randint(8, 12)):
        customers.append(create_customer(
            db,
            owner_id=user.id,
            name=fake.company(),
            email=fake.unique.company_email(),
            phone=''.join(filter(str.isdigit, fake.phone_number()))[:20],
            tax_id=fake.bothify("TIN-########") if random.choice([True, False]) else None,
        ))
    print(f"✅ Seeded {len(customers)} customers")

    print("🔄 Creating invoices and payments...")
    invoices = []
    for _ in range(30):
        invoice_date = _past_date()
        line_items = [
            {
                "description": fake.bs().capitalize(),
                "quantity": random.randint(1, 10),
                "unit_price": _money(1000, 50000),
            }
            for _ in range(random.randint(1, 4))
        ]
        send = random.random() > 0.2
        invoice = create_invoice(
            db,
            owner_id=user.id,
            customer_id=random.choice(customers).id,
            line_items=line_items,
            apply_vat=random.random() > 0.3,
            invoice_date=invoice_date,
            due_date=invoice_date + timedelta(days=random.choice([7, 14, 30])),
            notes=fake.sentence() if random.choice([True, False]) else None,
            send=send,
        )

        if send:
            roll = random.random()
            if roll < 0.4:
                invoice = record_payment(db, user.id, invoice.id, invoice.total_amount)
            elif roll < 0.6:
                part = (invoice.total_amount * Decimal("0.5")).quantize(Decimal("0.01"))
                invoice = record_payment(db, user.id, invoice.id, part)

        invoices.append(invoice)
        print(f"📟 {invoice.invoice_number} {invoice.status.value} {invoice.total_amount}")

    print(f"✅ Seeded {len(invoices)} invoices")

    print("🔄 Creating expenses...")
    expenses = []
    for _ in range(25):
        expense = create_expense(
            db,
            owner_id=user.id,
            description=fake.catch_phrase(),
            amount=_money(500, 80000),
            category=random.choice(list(ExpenseCategory)),
            expense_date=_past_date(),
            apply_vat=random.random() > 0.4,
        )
        expense = update_expense_status(db, user.id, expense.id, random.choice(list(ExpenseStatus)))
        expenses.append(expense)

    print(f"✅ Seeded {len(expenses)} expenses")
finally:
    db.close()
