from fastapi import APIRouter
from relaychat.api.v1.routes import auth
from .users import router as users_router
from .chat import router as chat_router


api_router = APIRouter()

api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(users_router)
api_router.include_router(chat_router)
