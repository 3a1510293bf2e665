from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from nestify.core.config import settings
from nestify.core.firebase_init import initialize_firebase, get_firebase_status
from nestify.core.scheduler import start_scheduler, stop_scheduler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Nestify API",
    description="Hostel management: rooms, tenures, monthly billing and online rent payment",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== STARTUP / SHUTDOWN ====================
@app.on_event("startup")
async def startup_event():
    """Initialize Firebase and start the overdue bill scheduler"""
    logger.info("FastAPI startup event triggered")
    if not get_firebase_status()['available']:
        if initialize_firebase():
            logger.info("Firebase initialized successfully")
        else:
            logger.warning("Firebase initialization failed - requests touching Firebase will fail")
    start_scheduler()

@app.on_event("shutdown")
async def shutdown_event():
    """Stop scheduler on app shutdown"""
    logger.info("FastAPI shutdown event triggered")
    stop_scheduler()

# ==================== ROUTERS ====================

def safe_include_router(router_module_path: str, router_name: str = "router"):
    """Include a router, logging instead of crashing when its module fails to import"""
    try:
        module = __import__(router_module_path, fromlist=[router_name])
        router = getattr(module, router_name)
        app.include_router(router)
        logger.info(f"Included {router_module_path}")
        return True
    except Exception as e:
        logger.error(f"Failed to include {router_module_path}: {str(e)}", exc_info=True)
        return False

routers_to_load = [
    ("nestify.routers.auth", "Authentication"),
    ("nestify.routers.rooms", "Rooms"),
    ("nestify.routers.tenures", "Tenures"),
    ("nestify.routers.billing", "Billing"),
    ("nestify.routers.payments", "Payments"),
    ("nestify.routers.notices", "Notices"),
    ("nestify.routers.settings", "Settings"),
    ("nestify.routers.dashboard", "Admin Dashboard"),
    ("nestify.routers.tenure_portal", "Tenure Portal"),
]

successful_routers = []
failed_routers = []

for router_path, router_description in routers_to_load:
    if safe_include_router(router_path):
        successful_routers.append(router_description)
    else:
        failed_routers.append(router_description)

logger.info(f"Successfully loaded routers: {successful_routers}")
if failed_routers:
    logger.warning(f"Failed to load routers: {failed_routers}")

@app.get("/")
async def root():
    return {
        "message": "Welcome to the Nestify API",
        "firebase_status": get_firebase_status(),
        "loaded_routers": successful_routers,
        "failed_routers": failed_routers
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "firebase_available": get_firebase_status()['available'],
        "loaded_routers": len(successful_routers),
        "failed_routers": len(failed_routers)
    }
