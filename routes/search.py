from fastapi import APIRouter, Depends, Query

from config import SEARCH_RESULT_LIMIT, SEARCH_SUGGESTION_LIMIT
from storage import IStorage, SearchLimits, SearchResults
from utils.route_helpers import get_storage

router = APIRouter(prefix="/api/search", tags=["search"])

@router.get("", response_model=SearchResults)
def search(q: str = Query("", max_length=200), storage: IStorage = Depends(get_storage)):
    """Full results page: communities, posts, stations and people"""
    return storage.search_entities(q, SearchLimits.uniform(SEARCH_RESULT_LIMIT))

@router.get("/suggestions", response_model=SearchResults)
def suggestions(q: str = Query("", max_length=200), storage: IStorage = Depends(get_storage)):
    """Short typeahead list for the global search box"""
    return storage.search_entities(q, SearchLimits.uniform(SEARCH_SUGGESTION_LIMIT))
