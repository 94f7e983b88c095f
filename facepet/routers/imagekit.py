from fastapi import APIRouter
from fastapi.responses import JSONResponse
import hashlib
import hmac
import time
import uuid

from facepet.core.config import settings

router = APIRouter()

AUTH_PARAMS_LIFETIME_SECONDS = 30 * 60

def sign_upload(private_key: str, token: str, expire: int) -> str:
    """HMAC-SHA1 over token + expire, as ImageKit expects for client-side uploads."""
    return hmac.new(private_key.encode(), f"{token}{expire}".encode(), hashlib.sha1).hexdigest()

def get_authentication_parameters(private_key: str, token: str = None, expire: int = None) -> dict:
    token = token or str(uuid.uuid4())
    expire = expire or int(time.time()) + AUTH_PARAMS_LIFETIME_SECONDS
    return {"token": token, "expire": expire, "signature": sign_upload(private_key, token, expire)}

@router.get("/auth")
async def imagekit_auth():
    missing = {
        "publicKey": not settings.IMAGEKIT_PUBLIC_KEY,
        "urlEndpoint": not settings.IMAGEKIT_URL_ENDPOINT,
        "privateKey": not settings.IMAGEKIT_PRIVATE_KEY,
    }
    if any(missing.values()):
        return JSONResponse(
            status_code=500,
            content={"error": "ImageKit configuration missing", "missing": missing},
        )
    return get_authentication_parameters(settings.IMAGEKIT_PRIVATE_KEY)
