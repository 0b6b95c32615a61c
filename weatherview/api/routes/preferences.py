from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from weatherview.api.deps import get_preferences_store
from weatherview.repositories.preferences import PreferencesStore
from weatherview.schemas.preferences import PreferencesRead, PreferencesUpdate

router = APIRouter(prefix="/preferences")


@router.get("", response_model=PreferencesRead)
def read_preferences(
    store: Annotated[PreferencesStore, Depends(get_preferences_store)],
) -> PreferencesRead:
    return PreferencesRead.from_preferences(store.get())


# Plain def: the JSON-file store writes synchronously, so this runs in the threadpool.
@router.put("", response_model=PreferencesRead)
def update_preferences(
    response: Response,
    body: PreferencesUpdate,
    store: Annotated[PreferencesStore, Depends(get_preferences_store)],
) -> PreferencesRead:
    prefs = store.update(hometown=body.hometown, api_key=body.api_key)
    response.headers["Cache-Control"] = "no-store"
    return PreferencesRead.from_preferences(prefs)
