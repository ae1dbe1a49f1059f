"""Scan API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from pymongo.database import Database

from miranda.database.mongo import get_db
from miranda.dtos.scan import (
    RunningScanResponse,
    ScanDTO,
    ScanLogDTO,
    ScanQueueDTO,
    StartScanRequest,
    StartScanResponse,
)
from miranda.entities.scan import ScanOptions
from miranda.services.scan_service import ScanService

router = APIRouter(prefix="/scans", tags=["Scans"])


@router.post("", response_model=StartScanResponse, status_code=status.HTTP_201_CREATED)
def start_scan(request: StartScanRequest, db: Database = Depends(get_db)):
    """Start a scan. 409 while another scan is not completed."""
    options = ScanOptions(**request.model_dump(exclude={"delay_seconds"}))
    scan_id = ScanService(db).start_scan(options, delay_seconds=request.delay_seconds)
    return StartScanResponse(scan_id=scan_id)


@router.post("/{scan_id}/cancel", status_code=status.HTTP_204_NO_CONTENT)
def cancel_scan(scan_id: str, db: Database = Depends(get_db)):
    ScanService(db).cancel_scan(scan_id)


@router.get("", response_model=List[ScanDTO])
def list_scans(
    limit: int = Query(50, ge=1, le=200),
    db: Database = Depends(get_db),
):
    """Most recent scans, newest first."""
    return [ScanDTO.from_entity(s) for s in ScanService(db).list_scans(limit=limit)]


@router.get("/running", response_model=RunningScanResponse)
def get_running_scan(db: Database = Depends(get_db)):
    scan = ScanService(db).get_running_scan()
    return RunningScanResponse(scan=ScanDTO.from_entity(scan) if scan else None)


@router.get("/{scan_id}", response_model=ScanDTO)
def get_scan(scan_id: str, db: Database = Depends(get_db)):
    return ScanDTO.from_entity(ScanService(db).get_scan(scan_id))


@router.get("/{scan_id}/queue", response_model=ScanQueueDTO)
def get_queue_length(scan_id: str, db: Database = Depends(get_db)):
    return ScanQueueDTO(scan_id=scan_id, length=ScanService(db).get_queue_length(scan_id))


@router.get("/{scan_id}/logs", response_model=List[ScanLogDTO])
def get_scan_logs(
    scan_id: str,
    limit: int = Query(500, ge=1, le=5000),
    db: Database = Depends(get_db),
):
    return [ScanLogDTO.from_entity(log) for log in ScanService(db).get_scan_logs(scan_id, limit=limit)]
