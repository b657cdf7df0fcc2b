from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from vatbook.common.error_handlers import register_error_handlers
from vatbook.common.logger import setup_file_logger
from vatbook.core.config import settings
from vatbook.api.v1 import auth, customer, dashboard, expense, invoice, profile

app = FastAPI(title="VATBook", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.LOG_TO_FILE:
    setup_file_logger(settings.LOG_DIR, settings.LOG_LEVEL)

register_error_handlers(app)

# Register API routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["authentication"])
app.include_router(profile.router, prefix="/api/v1/profile", tags=["profile"])
app.include_router(
    customer.router, prefix="/api/v1/customers", tags=["customers"])
app.include_router(
    invoice.router, prefix="/api/v1/invoices", tags=["invoices"])
app.include_router(
    expense.router, prefix="/api/v1/expenses", tags=["expenses"])
app.include_router(
    dashboard.router, prefix="/api/v1/dashboard", tags=["dashboard"])


@app.get("/")
def read_root():
    return {"message": "Welcome to the VATBook APIs!"}
