# mentorlink/dependencies/service_dependencies.py
from fastapi import Depends
from sqlalchemy.orm import Session
from ..database import get_db
from ..graph_store import GraphStore, SqlAlchemyGraphStore
from ..services.mentorship_service import MentorshipService
from ..services.matching_service import MatchingService
from ..services.profile_service import ProfileService

def get_graph_store(db: Session = Depends(get_db)) -> GraphStore:
    return SqlAlchemyGraphStore(db)

def get_mentorship_service(store: GraphStore = Depends(get_graph_store)) -> MentorshipService:
    return MentorshipService(store)

def get_matching_service(store: GraphStore = Depends(get_graph_store)) -> MatchingService:
    return MatchingService(store)

def get_profile_service(store: GraphStore = Depends(get_graph_store)) -> ProfileService:
    return ProfileService(store)
