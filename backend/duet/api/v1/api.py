from fastapi import APIRouter

from duet.api.v1.endpoints import auth

api_router = APIRouter()

# Unauthenticated bootstrap surface, mounted under /rest: /login, /signup, /verify, /refresh
api_router.include_router(auth.router, tags=["authentication"])
