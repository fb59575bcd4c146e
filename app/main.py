import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.exceptions import InvalidExpenseError
from app.core.db_check import wait_for_db
from app.db.session import init_models
from app.api.v1.routes.system import router as system_router
from app.api.v1.routes.group import router as group_router
from app.api.v1.routes.expense import router as expense_router
from app.api.v1.routes.settlement import router as settlement_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    await wait_for_db()
    await init_models()
    logger.info("%s started", settings.APP_NAME)
    yield

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

@app.exception_handler(InvalidExpenseError)
async def invalid_expense_handler(request: Request, exc: InvalidExpenseError):
    logger.warning("Rejected settlement input: %s", exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})

@app.get("/")
async def root():
    return {"message": "SplitEase Backend is live"}

app.include_router(system_router, prefix="/api/v1/system")
app.include_router(settlement_router, prefix="/api/v1/settlements")
app.include_router(group_router, prefix="/api/v1/groups")
app.include_router(expense_router, prefix="/api/v1/groups")
