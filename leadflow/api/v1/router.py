from fastapi import APIRouter
from leadflow.api.v1.endpoints import estimates, leads, intakes, clients, requests

api_router = APIRouter()
api_router.include_router(estimates.router, prefix="/estimates", tags=["estimates"])
api_router.include_router(leads.router, prefix="/leads", tags=["leads"])
api_router.include_router(intakes.chat_router, prefix="/intake", tags=["intake"])
api_router.include_router(intakes.router, prefix="/intakes", tags=["intakes"])
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(requests.router, prefix="/requests", tags=["requests"])
