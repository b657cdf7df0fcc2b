# vatbook/models/__init__.py
from .user import User, UserProfile, BusinessType
from .customer import Customer
from .invoice import Invoice, InvoiceStatus
from .expense import Expense, ExpenseCategory, ExpenseStatus, CATEGORY_LABELS
