from fastapi import APIRouter, Depends

from WillChat.dependencies import get_preferences_store
from WillChat.schemas.chat import ProModeOut
from WillChat.services.preferences import PreferencesStore


router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("/pro-mode")
def get_pro_mode(prefs: PreferencesStore = Depends(get_preferences_store)) -> ProModeOut:
    return ProModeOut(is_pro_mode=prefs.is_pro_mode)


@router.post("/pro-mode/activate")
def activate_pro_mode(prefs: PreferencesStore = Depends(get_preferences_store)) -> ProModeOut:
    prefs.activate_pro_mode()
    return ProModeOut(is_pro_mode=prefs.is_pro_mode)


@router.post("/pro-mode/deactivate")
def deactivate_pro_mode(prefs: PreferencesStore = Depends(get_preferences_store)) -> ProModeOut:
    prefs.deactivate_pro_mode()
    return ProModeOut(is_pro_mode=prefs.is_pro_mode)
