from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from cueclub.core.database import SessionLocal
from cueclub.core.security import verify_token

# Tokens come from the identity provider; tokenUrl is only used by the docs UI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    return verify_token(token)
