from fastapi import APIRouter
from app.modules.directory.router import router as directory_router
from app.modules.schedules.router import router as schedules_router
from app.modules.availability.router import router as availability_router
from app.modules.appointments.router import router as appointments_router

api_router = APIRouter()
api_router.include_router(directory_router, prefix="/doctors", tags=["doctors"])
api_router.include_router(schedules_router, prefix="/doctors", tags=["schedules"])
api_router.include_router(availability_router, prefix="/doctors", tags=["availability"])
# appointments_router carries both /doctors/{id}/appointments and /appointments/{id}
api_router.include_router(appointments_router, tags=["appointments"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
