from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from app.database.db import get_db
from app.schemas.events import EventOut
from app.schemas.users import UserCreate, UserOut
from app.services.events import list_recent_user_events
from app.services.users import create_user, get_user, list_users

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def new_user(payload: UserCreate, db: Session = Depends(get_db)):
    return create_user(db, name=payload.name, email=payload.email)


@router.get("", response_model=list[UserOut])
def all_users(db: Session = Depends(get_db)):
    return list_users(db)


@router.get("/{user_id}", response_model=UserOut)
def user_by_id(user_id: int = Path(ge=1), db: Session = Depends(get_db)):
    user = get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/{user_id}/events", response_model=list[EventOut])
def recent_user_events(user_id: int = Path(ge=1), db: Session = Depends(get_db)):
    """Events the user attended during the last month."""
    if not get_user(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return list_recent_user_events(db, user_id)
