"""Runtime settings API endpoints."""

from fastapi import APIRouter, Depends
from pymongo.database import Database

from miranda.database.mongo import get_db
from miranda.dtos.settings import AutoScanSettingsUpdate, SlackSettingsUpdate
from miranda.services.settings_service import AutoScanSettings, SettingsService, SlackSettings

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("/auto-scan", response_model=AutoScanSettings)
def get_auto_scan_settings(db: Database = Depends(get_db)):
    return SettingsService(db).get_auto_scan()


@router.put("/auto-scan", response_model=AutoScanSettings)
def update_auto_scan_settings(request: AutoScanSettingsUpdate, db: Database = Depends(get_db)):
    return SettingsService(db).update_auto_scan(request.model_dump(exclude_none=True))


@router.get("/slack", response_model=SlackSettings)
def get_slack_settings(db: Database = Depends(get_db)):
    return SettingsService(db).get_slack()


@router.put("/slack", response_model=SlackSettings)
def update_slack_settings(request: SlackSettingsUpdate, db: Database = Depends(get_db)):
    return SettingsService(db).update_slack(request.model_dump(exclude_none=True))
