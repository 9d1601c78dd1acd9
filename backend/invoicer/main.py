"""
Invoicer - Main FastAPI Application
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from invoicer.config import settings
from invoicer.exceptions import InvoicerError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Invoicing for small businesses: stock, invoices, branding and PDF export",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvoicerError)
async def invoicer_error_handler(request: Request, exc: InvoicerError):
    """Domain errors -> HTTP status with {detail, error, stage, entity}."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (stage=%s)", request.method, request.url.path, exc.message, exc.stage)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are validation errors (400) like service-level ones."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg") or "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message, "error": "validation_error", "stage": None, "entity": None},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "version": settings.APP_VERSION}


@app.on_event("startup")
def create_tables():
    """Create missing tables (local/dev). Production schemas are managed in Supabase."""
    if not settings.AUTO_CREATE_TABLES:
        return
    from invoicer.database import engine
    from invoicer.models import Base
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")
    except Exception as e:
        logger.error("Could not create tables: %s", e)
        raise


# Include routers
from invoicer.api import (
    stock_router,
    invoices_router,
    branding_router,
    company_router,
    dashboard_router,
)

app.include_router(stock_router, prefix="/api/stock", tags=["Stock"])
app.include_router(invoices_router, prefix="/api/invoices", tags=["Invoices"])
app.include_router(branding_router, prefix="/api/branding", tags=["Branding"])
app.include_router(company_router, prefix="/api/company-profile", tags=["Company Profile"])
app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("invoicer.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
