from fastapi import APIRouter, Depends

from schoolhub.core.rate_limit import enforce_ip_rate_limit
from schoolhub.modules.auth import router as auth_router
from schoolhub.modules.classrooms.router import router as classrooms_router
from schoolhub.modules.schools.router import router as schools_router
from schoolhub.modules.students.router import router as students_router
from schoolhub.modules.users.router import router as users_router

# Every API route sits behind the per-IP request limiter
api_router = APIRouter(dependencies=[Depends(enforce_ip_rate_limit)])

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(users_router, prefix="/users", tags=["Users"])

api_router.include_router(schools_router, prefix="/schools", tags=["Schools"])

api_router.include_router(classrooms_router, prefix="/classrooms", tags=["Classrooms"])

api_router.include_router(students_router, prefix="/students", tags=["Students"])
