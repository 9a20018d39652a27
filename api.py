from typing import Optional

from fastapi import APIRouter, HTTPException, Request
import logging

import leveling
from models import (
    ActionResult, ErrorCode, ItemAction, MessageEnvelope, ReadingReward, RenameRequest,
    StartGameRequest,
)
from service import PetService

logger = logging.getLogger(__name__)

# Router for the pet, shop and minigame endpoints
router = APIRouter()

NOT_FOUND_ERRORS = {ErrorCode.ITEM_NOT_FOUND, ErrorCode.GAME_NOT_FOUND, ErrorCode.SESSION_NOT_FOUND}
CONFLICT_ERRORS = {ErrorCode.ALREADY_COMPLETED}


def get_service(request: Request) -> PetService:
    return request.app.state.service


def _raise_for(error: ErrorCode):
    """Turns a business failure into an HTTP error. The code is the detail; wording is the client's job."""
    if error in NOT_FOUND_ERRORS:
        raise HTTPException(status_code=404, detail=error.value)
    if error in CONFLICT_ERRORS:
        raise HTTPException(status_code=409, detail=error.value)
    raise HTTPException(status_code=400, detail=error.value)


def _pet_response(result: ActionResult):
    if not result.success:
        _raise_for(result.error)
    return {"success": True, "pet": result.pet.model_dump(mode="json"), "level_ups": result.level_ups}


# --- Pet ---

@router.get("/pet/{user_id}")
async def get_pet_endpoint(user_id: str, request: Request):
    """Raw pet snapshot."""
    pet = get_service(request).get_pet(user_id)
    return {"success": True, "pet": pet.model_dump(mode="json")}


@router.get("/pet/{user_id}/status")
async def get_status_endpoint(user_id: str, request: Request):
    """Mood, active alerts, evolution progress and today's reading for rendering bars and banners."""
    service = get_service(request)
    pet = service.get_pet(user_id)
    return {
        "success": True,
        "status": service.status(user_id).model_dump(mode="json"),
        "can_evolve": leveling.can_evolve(pet),
        "evolution_requirement": leveling.evolution_requirement(pet),
        "level_progress": leveling.level_progress(pet),
        "reading_today": service.reading_today(user_id),
    }


@router.post("/pet/{user_id}/feed")
async def feed_endpoint(user_id: str, request: Request):
    return _pet_response(get_service(request).feed(user_id))


@router.post("/pet/{user_id}/play")
async def play_endpoint(user_id: str, request: Request):
    return _pet_response(get_service(request).play(user_id))


@router.post("/pet/{user_id}/sleep")
async def sleep_endpoint(user_id: str, request: Request):
    return _pet_response(get_service(request).sleep(user_id))


@router.post("/pet/{user_id}/evolve")
async def evolve_endpoint(user_id: str, request: Request):
    return _pet_response(get_service(request).evolve(user_id))


@router.post("/pet/{user_id}/rename")
async def rename_endpoint(user_id: str, body: RenameRequest, request: Request):
    return _pet_response(get_service(request).rename(user_id, body.name))


@router.post("/pet/{user_id}/reading")
async def reading_endpoint(user_id: str, body: ReadingReward, request: Request):
    """Called by the reading tracker when a session ends or a book is finished."""
    result = get_service(request).reward_for_reading(user_id, body.minutes, body.completed_book)
    return _pet_response(result)


@router.post("/pet/{user_id}/reset")
async def reset_endpoint(user_id: str, request: Request):
    pet = get_service(request).reset_pet(user_id)
    return {"success": True, "pet": pet.model_dump(mode="json")}


# --- Shop ---

@router.get("/shop/items")
async def get_shop_items_endpoint(request: Request, user_id: Optional[str] = None):
    """Whole catalog; with a user id each item also says whether it is unlocked for that pet."""
    service = get_service(request)
    items = [item.model_dump(mode="json") for item in service.list_catalog()]
    if user_id is not None:
        unlocked = {item.id for item in service.list_unlocked(user_id)}
        for item in items:
            item["unlocked"] = item["id"] in unlocked
    return {"success": True, "items": items}


@router.post("/pet/{user_id}/item_action")
async def item_action_endpoint(user_id: str, action: ItemAction, request: Request):
    """Buys or uses an item."""
    service = get_service(request)
    if action.action_type == 'buy':
        result = service.buy(user_id, action.item_id)
    elif action.action_type == 'use':
        result = service.use_item(user_id, action.item_id)
    else:
        raise HTTPException(status_code=400, detail="Unknown action type.")
    return _pet_response(result)


# --- Minigames ---

@router.get("/minigames")
async def get_minigames_endpoint(user_id: str, request: Request):
    """Games available to this user, with their play stats."""
    service = get_service(request)
    stats = service.minigames.all_stats(user_id)
    games = []
    for game in service.available_games(user_id):
        check = service.can_play(user_id, game.id)
        games.append({
            **game.model_dump(mode="json"),
            "plays_left": check.plays_left,
            "stats": stats[game.id].model_dump(mode="json") if game.id in stats else None,
        })
    return {"success": True, "games": games}


@router.post("/minigames/{game_id}/start")
async def start_minigame_endpoint(game_id: str, body: StartGameRequest, request: Request):
    """Opens a session and returns the init payload for the game surface."""
    result = get_service(request).start_minigame(body.user_id, game_id)
    if not result.success:
        _raise_for(result.error)
    return {"success": True, **result.init.model_dump(mode="json")}


@router.post("/minigames/message")
async def minigame_message_endpoint(envelope: MessageEnvelope, request: Request):
    """Transport for game_ready / game_complete / game_error messages."""
    return get_service(request).handle_game_message(envelope.message)


@router.get("/minigames/{game_id}/leaderboard")
async def get_leaderboard_endpoint(game_id: str, request: Request):
    service = get_service(request)
    if service.minigames.get_game(game_id) is None:
        raise HTTPException(status_code=404, detail=ErrorCode.GAME_NOT_FOUND.value)
    return {"success": True, "leaderboard": service.game_leaderboard(game_id)}
