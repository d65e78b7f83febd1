from fastapi import APIRouter, Depends

from ordo.deps import get_notifier, get_store
from ordo.schemas.settings import AppSettings
from ordo.services.notifier import CATALOG_CHANGED, ChangeNotifier
from ordo.services.store import SqlDataStore

router = APIRouter(prefix="/admin/settings", tags=["settings"])


@router.get("", response_model=AppSettings)
def get_settings(store: SqlDataStore = Depends(get_store)):
    return store.fetch_settings()


@router.put("", response_model=AppSettings)
def put_settings(body: AppSettings, store: SqlDataStore = Depends(get_store),
                 notifier: ChangeNotifier = Depends(get_notifier)):
    # settings travel with the catalog snapshot, so a save is a catalog change
    saved = store.save_settings(body)
    notifier.publish(CATALOG_CHANGED)
    return saved
