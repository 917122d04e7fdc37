import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from travel_crm.api.routes_auth import router as auth_router, ensure_admin_account
from travel_crm.api.routes_requests import router as requests_router
from travel_crm.api.routes_itinerary import router as itinerary_router
from travel_crm.api.routes_email import router as email_router
from travel_crm.api.routes_public import router as public_router
from travel_crm.api.routes_vehicles import router as vehicles_router

from travel_crm.core.config_loader import settings
from travel_crm.core.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_admin_account()
    logger.info(f"{settings.BRAND_NAME} back office started ({settings.environment})")
    yield


app = FastAPI(
    title="LankaLux Travel CRM",
    description="Back office for client trip requests, GPT-drafted Sri Lanka itineraries and client emails",
    version="1.0.0",
    lifespan=lifespan,
)

# -------------------------------------------------------------
# CORS
# -------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------------------------------------------
# ROUTES
# -------------------------------------------------------------
app.include_router(auth_router)
app.include_router(requests_router)
app.include_router(itinerary_router)
app.include_router(email_router)
app.include_router(public_router)
app.include_router(vehicles_router)


# -------------------------------------------------------------
# ROOT ENDPOINT
# -------------------------------------------------------------
@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Travel CRM backend is running",
        "env": settings.environment
    }


# -------------------------------------------------------------
# RUN LOCAL
# -------------------------------------------------------------
if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
