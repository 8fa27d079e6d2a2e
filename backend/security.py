import hmac
import logging
import os
from dotenv import load_dotenv
from fastapi import HTTPException, Header

load_dotenv()
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "change-me")

logger = logging.getLogger(__name__)

def verify_admin(x_api_key: str = Header(default="")):
    """Reject admin requests whose ``X-API-Key`` header does not match ADMIN_API_KEY."""
    if not hmac.compare_digest(x_api_key.encode("utf-8"), ADMIN_API_KEY.encode("utf-8")):
        logger.info("Rejected admin request with invalid API key")
        raise HTTPException(status_code=401, detail="Invalid admin API key")
