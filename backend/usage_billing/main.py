from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

from usage_billing.core.config import settings
from usage_billing.routers import billing_alerts, functions, quotas, usage

OPENAPI_TAGS = [
    {"name": "Functions", "description": "Batch billing and quota reset jobs."},
    {"name": "Usage", "description": "Record usage, check quotas and view analytics."},
    {"name": "Quotas", "description": "Manage usage quotas and reset them."},
    {"name": "Billing Alerts", "description": "List, acknowledge and delete billing alerts."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Usage metering and billing backend. "
        "Prices usage events, invoices them through the payment provider, "
        "enforces quotas and notifies owners when they run out."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)


@app.middleware("http")
async def options_handler(request: Request, call_next):  # type: ignore[no-untyped-def]
    if request.method == "OPTIONS":
        origin = request.headers.get("origin", "*")
        return Response(
            status_code=200,
            headers={
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Methods": "POST, GET, PUT, DELETE, OPTIONS",
                "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
                "Access-Control-Max-Age": "86400",
            },
        )
    return await call_next(request)


app.include_router(functions.router, prefix="/functions", tags=["Functions"])
app.include_router(usage.router, prefix="/v1/usage", tags=["Usage"])
app.include_router(quotas.router, prefix="/v1/quotas", tags=["Quotas"])
app.include_router(
    billing_alerts.router,
    prefix="/v1/billing_alerts",
    tags=["Billing Alerts"],
)


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
