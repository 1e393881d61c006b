from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from db.database import create_db_and_tables
from core.actuator import ActuatorGateway
from core.config import settings
from core.errors import WarehouseError
from core.logging import configure_logging, get_logger
from core.mode import ModeGate
from routers.actuator import router as actuator_router
from routers.cells import router as cells_router
from routers.control import router as control_router
from routers.loading_slots import router as loading_slots_router
from routers.operations import router as operations_router
from routers.products import router as products_router
from contextlib import asynccontextmanager

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await create_db_and_tables()
    logger.info("startup", actuator=app.state.actuator.base_url, mode=app.state.mode_gate.mode)
    yield


app = FastAPI(
    title="Smart Warehouse API",
    description="API for warehouse cells, loading slots and actuator operations",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Process-wide collaborators, injected into handlers via get_gateway / get_mode_gate
app.state.actuator = ActuatorGateway.from_settings(settings)
app.state.mode_gate = ModeGate(settings.operating_mode)


@app.exception_handler(WarehouseError)
async def warehouse_error_handler(request: Request, exc: WarehouseError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.get("/health")
async def health():
    return {"status": "ok"}


# Inventory routes
app.include_router(products_router, prefix="/api/products", tags=["products"])
app.include_router(cells_router, prefix="/api/cells", tags=["cells"])
app.include_router(loading_slots_router, prefix="/api/loading-slots", tags=["loading-slots"])

# Ledger + actuator routes
app.include_router(operations_router, prefix="/api/operations", tags=["operations"])
app.include_router(control_router, prefix="/api", tags=["mode"])
app.include_router(actuator_router, prefix="/api/actuator", tags=["actuator"])

if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=True)
