from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from household_finance.assistant.router import router as assistant_router
from household_finance.auth_router import router as auth_router
from household_finance.config import settings
from household_finance.context.router import router as context_router
from household_finance.database import check_health, close_database, init_database
from household_finance.exception_handlers import register_exception_handlers
from household_finance.insights.router import router as insights_router
from household_finance.logging_config import setup_logging
from household_finance.transactions.router import router as transactions_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_database()
    yield
    await close_database()


app = FastAPI(
    title="Household Finance",
    description="Conversational assistant over a household's transactions",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(assistant_router, prefix="/api/v1/assistant", tags=["assistant"])
app.include_router(insights_router, prefix="/api/v1/insights", tags=["insights"])
app.include_router(context_router, prefix="/api/v1/context", tags=["context"])
app.include_router(transactions_router, prefix="/api/v1/transactions", tags=["transactions"])


@app.get("/api/v1/health")
async def health():
    await check_health()
    return {"status": "healthy"}
