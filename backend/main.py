from contextlib import asynccontextmanager
from datetime import datetime
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

import config
from database import init_engine, dispose_engine
from exceptions import LedgerError, UnbalancedEntry, InvalidLine
import routers.accounts as accounts
import routers.account_groups as account_groups
import routers.account_ceilings as account_ceilings
import routers.currencies as currencies
import routers.vouchers as vouchers
import routers.manual_journals as manual_journals
import routers.treasury as treasury
import routers.ledger_reports as ledger_reports


os.makedirs(config.LOG_DIR, exist_ok=True) # Create the log directory if it doesn't exist

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(config.LOG_DIR, f"app_{current_time_str}.log")

# Configure the root logger
logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE, # Log to a file
    filemode='a' # Append to the file if it exists
)

# Also log to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(config.LOG_LEVEL)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler) # Add to the root logger

logger = logging.getLogger(__name__)
logger.info("Application starting up...")
# --- End Logging Configuration ---


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_engine()
    yield
    dispose_engine()
    logger.info("Application shut down")


app = FastAPI(lifespan=lifespan)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if isinstance(exc, (UnbalancedEntry, InvalidLine)):
        # Orchestrators build their own lines, so these are bugs rather than bad input
        logger.error(f"{request.method} {request.url.path} failed: {exc.reason}: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.reason}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Ledger API",
        version="1.0.0",
        description="Chart of accounts, journal posting, ceilings and vouchers",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    # Apply security globally to all endpoints
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


app.include_router(accounts.router)
app.include_router(account_groups.router)
app.include_router(account_ceilings.router)
app.include_router(currencies.router)
app.include_router(vouchers.receipt_router)
app.include_router(vouchers.payment_router)
app.include_router(manual_journals.router)
app.include_router(treasury.bank_router)
app.include_router(treasury.cash_box_router)
app.include_router(ledger_reports.router)


@app.get("/")
async def test_route():
    return {"message": "Ledger API is running"}
