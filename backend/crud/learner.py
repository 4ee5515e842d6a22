from sqlalchemy.orm import Session
from backend.errors import NotFoundError
from backend.models import Learner
from backend.schemas import LearnerCreate
from typing import List, Optional

def create_learner(db: Session, learner: LearnerCreate) -> Learner:
    """Create a new learner with only the first table unlocked"""
    db_learner = Learner(**learner.model_dump(), unlocked_count=1)
    db.add(db_learner)
    db.commit()
    db.refresh(db_learner)
    return db_learner

def get_learner(db: Session, learner_id: int) -> Optional[Learner]:
    """Get learner by ID"""
    return db.query(Learner).filter(Learner.id == learner_id).first()

def get_learner_by_name(db: Session, name: str) -> Optional[Learner]:
    """Get learner by name"""
    return db.query(Learner).filter(Learner.name == name).first()

def list_learners(db: Session) -> List[Learner]:
    """All learners, oldest first"""
    return db.query(Learner).order_by(Learner.id).all()

def require_learner(db: Session, learner_id: int, for_update: bool = False) -> Learner:
    """
    Get a learner or raise NotFoundError.
    
    With for_update the row is locked until the transaction ends, which
    serializes concurrent answers for the same learner on databases that
    support SELECT ... FOR UPDATE.
    """
    query = db.query(Learner).filter(Learner.id == learner_id)
    if for_update:
        query = query.with_for_update()
    learner = query.first()
    if learner is None:
        raise NotFoundError(f"Learner {learner_id} not found")
    return learner
