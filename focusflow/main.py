from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import date
from typing import List, Optional
import logging

from .config import get_settings
from .errors import InvalidArgument
from .models import (Activity, ActivityRequest, Card, CardRequest, CompletionRequest, ConflictReport, Deck,
                     DeckRequest, FreeSlot, ResolveRequest, ReviewRequest, ScoredSlot)
from .services import FlashcardService, PlannerService
from .storage import CsvStore, InMemoryStore

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

settings = get_settings()

app = FastAPI(title="Focus Flow Scheduling API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Singleton store and services
store = CsvStore(settings.data_dir) if settings.storage == "csv" else InMemoryStore()
flashcards = FlashcardService(store)
planner = PlannerService(store, settings.day_window)


def get_flashcard_service() -> FlashcardService:
    return flashcards


def get_planner_service() -> PlannerService:
    return planner


@app.on_event("startup")
def startup_event():
    if isinstance(store, CsvStore) and not store.load():
        logging.warning(f"Some data files were missing in {store.data_dir}, starting with empty tables.")


@app.exception_handler(InvalidArgument)
def invalid_argument_handler(request: Request, exc: InvalidArgument):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def _found(item, what: str):
    if item is None or item is False:
        raise HTTPException(status_code=404, detail=f"{what} not found")
    return item


# --- Decks ---

@app.get("/decks", response_model=List[Deck])
def list_decks(service: FlashcardService = Depends(get_flashcard_service)):
    return service.list_decks()


@app.post("/decks")
def create_deck(request: DeckRequest, service: FlashcardService = Depends(get_flashcard_service)):
    deck, cards = service.create_deck_with_cards(
        request.model_dump(exclude={"cards"}), [c.model_dump() for c in request.cards])
    return {"deck": deck, "cards": cards}


@app.get("/decks/{deck_id}", response_model=Deck)
def get_deck(deck_id: str, service: FlashcardService = Depends(get_flashcard_service)):
    return _found(service.get_deck(deck_id), "Deck")


@app.put("/decks/{deck_id}", response_model=Deck)
def update_deck(deck_id: str, request: DeckRequest, service: FlashcardService = Depends(get_flashcard_service)):
    return _found(service.update_deck(deck_id, request.model_dump(exclude={"cards"})), "Deck")


@app.delete("/decks/{deck_id}")
def delete_deck(deck_id: str, service: FlashcardService = Depends(get_flashcard_service)):
    _found(service.delete_deck(deck_id), "Deck")
    return {"success": True}


@app.get("/decks/{deck_id}/cards", response_model=List[Card])
def get_deck_cards(deck_id: str, service: FlashcardService = Depends(get_flashcard_service)):
    _found(service.get_deck(deck_id), "Deck")
    return service.get_cards(deck_id)


@app.post("/decks/{deck_id}/cards", response_model=List[Card])
def add_cards(deck_id: str, cards: List[CardRequest], service: FlashcardService = Depends(get_flashcard_service)):
    _found(service.get_deck(deck_id), "Deck")
    return service.add_cards_to_deck(deck_id, [c.model_dump() for c in cards])


@app.get("/decks/{deck_id}/stats")
def get_deck_stats(deck_id: str, service: FlashcardService = Depends(get_flashcard_service)):
    return _found(service.get_deck_stats(deck_id), "Deck")


@app.get("/decks/{deck_id}/session", response_model=List[Card])
def get_study_session(deck_id: str, count: Optional[int] = None,
                      service: FlashcardService = Depends(get_flashcard_service)):
    _found(service.get_deck(deck_id), "Deck")
    return service.get_study_session(deck_id, settings.session_size if count is None else count)


# --- Cards ---

@app.post("/cards", response_model=Card)
def create_card(request: CardRequest, service: FlashcardService = Depends(get_flashcard_service)):
    if not request.deck_id:
        raise HTTPException(status_code=400, detail="deck_id is required to create a flashcard")
    data = request.model_dump(exclude={"deck_id"})
    return _found(service.create_card(request.deck_id, **data), "Deck")


@app.put("/cards/{card_id}", response_model=Card)
def edit_card(card_id: str, request: CardRequest, service: FlashcardService = Depends(get_flashcard_service)):
    return _found(service.edit_card(card_id, request.model_dump(exclude={"deck_id"})), "Card")


@app.delete("/cards/{card_id}")
def delete_card(card_id: str, service: FlashcardService = Depends(get_flashcard_service)):
    _found(service.delete_card(card_id), "Card")
    return {"success": True}


@app.post("/cards/{card_id}/review", response_model=Card)
def review_card(card_id: str, request: ReviewRequest, service: FlashcardService = Depends(get_flashcard_service)):
    return _found(service.review_card(card_id, request.rating), "Card")


@app.get("/due", response_model=List[Card])
def get_due_cards(deck_id: Optional[str] = None, service: FlashcardService = Depends(get_flashcard_service)):
    return service.get_due_cards(deck_id)


@app.get("/stats")
def get_stats(service: FlashcardService = Depends(get_flashcard_service)):
    return service.get_overall_stats()


# --- Activities ---

@app.get("/activities", response_model=List[Activity])
def list_activities(day: Optional[date] = None, start: Optional[date] = None, end: Optional[date] = None,
                    service: PlannerService = Depends(get_planner_service)):
    if day is not None:
        return service.get_activities_for_date(day)
    if start is None or end is None:
        raise HTTPException(status_code=400, detail="Pass either day or both start and end")
    return service.get_activities_for_range(start, end)


@app.post("/activities", response_model=Activity)
def create_activity(request: ActivityRequest, service: PlannerService = Depends(get_planner_service)):
    return service.create_activity(request.model_dump())


@app.put("/activities/{activity_id}", response_model=Activity)
def update_activity(activity_id: str, request: ActivityRequest,
                    service: PlannerService = Depends(get_planner_service)):
    return _found(service.update_activity(activity_id, request.model_dump()), "Activity")


@app.delete("/activities/{activity_id}")
def delete_activity(activity_id: str, service: PlannerService = Depends(get_planner_service)):
    _found(service.delete_activity(activity_id), "Activity")
    return {"success": True}


@app.post("/activities/{activity_id}/complete", response_model=Activity)
def complete_activity(activity_id: str, request: CompletionRequest,
                      service: PlannerService = Depends(get_planner_service)):
    return _found(service.toggle_completion(activity_id, request.is_completed), "Activity")


# --- Scheduling ---

@app.post("/schedule/check", response_model=ConflictReport)
def check_conflicts(candidate: Activity, service: PlannerService = Depends(get_planner_service)):
    return service.check_activity(candidate)


@app.get("/schedule/free-slots", response_model=List[FreeSlot])
def get_free_slots(day: date, min_duration: int = 30, service: PlannerService = Depends(get_planner_service)):
    return service.get_free_slots(day, min_duration)


@app.post("/schedule/suggest", response_model=List[ScoredSlot])
def suggest_times(candidate: Activity, service: PlannerService = Depends(get_planner_service)):
    return service.suggest_times(candidate)


@app.post("/schedule/resolve", response_model=List[Activity])
def resolve_conflicts(request: ResolveRequest, service: PlannerService = Depends(get_planner_service)):
    rescheduled = service.resolve(request.date, request.activity_ids, request.strategy, request.commit)
    return _found(rescheduled, "Activity")
